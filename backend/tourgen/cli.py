"""3D property tour generator CLI.

Takes property photos, a walkthrough video, a panorama or a text description
and generates a navigable 3D world via the World Labs API.

Usage:
    property-tour --images ./photos/*.jpg --name "123 Main St"
    property-tour --image ./photo.jpg --name "Living Room"
    property-tour --video ./walkthrough.mp4 --name "Full Tour"
    property-tour --panorama ./pano.jpg --name "Back Yard"
    property-tour --text "Modern open-plan kitchen with marble countertops" --name "Kitchen Concept"
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click
import httpx

from tourgen.config import Settings, get_settings
from tourgen.errors import TourGenError
from tourgen.schemas.job import ModelTier, TourResult
from tourgen.schemas.prompt import Direction
from tourgen.services.providers.worldlabs import WorldLabsClient
from tourgen.services.tour_store import save_tour
from tourgen.services.workflow import PromptInput, PromptKind, TourWorkflow, WorkflowState

logger = logging.getLogger(__name__)

_STATE_MESSAGES = {
    WorkflowState.UPLOADING: "📤 Uploading media...",
    WorkflowState.SUBMITTING: "🏗️  Submitting generation job...",
    WorkflowState.POLLING: "⏳ Waiting for the 3D world...",
}


def make_client(settings: Settings) -> WorldLabsClient:
    return WorldLabsClient.from_settings(settings)


def _progress(pct: int) -> None:
    click.echo(f"\r⏳ Generating 3D world... {pct}%", nl=False)


def _state(state: WorkflowState) -> None:
    message = _STATE_MESSAGES.get(state)
    if message:
        click.echo(message)


def build_inputs(
    *,
    text: str | None,
    image: str | None,
    images: bool,
    video: str | None,
    panorama: str | None,
    paths: tuple[str, ...],
    directions: tuple[str, ...],
) -> PromptInput:
    chosen = [
        flag for flag, value in (
            ("--text", text), ("--image", image), ("--images", images),
            ("--video", video), ("--panorama", panorama),
        ) if value
    ]
    if len(chosen) != 1:
        raise click.UsageError("Specify exactly one input: --text, --image, --images, --video or --panorama")
    if paths and not images:
        raise click.UsageError(f"Unexpected arguments: {' '.join(paths)}")
    if directions and not images:
        raise click.UsageError("--direction only applies to --images")

    if text:
        return PromptInput(kind=PromptKind.TEXT, text=text)
    if image:
        return PromptInput(kind=PromptKind.IMAGE, media=[image])
    if video:
        return PromptInput(kind=PromptKind.VIDEO, media=[video])
    if panorama:
        return PromptInput(kind=PromptKind.PANORAMA, media=[panorama])

    if not paths:
        raise click.UsageError("--images needs at least one path or URL")
    if directions and len(directions) != len(paths):
        raise click.UsageError("Give one --direction per image, or none")
    return PromptInput(
        kind=PromptKind.MULTI_IMAGE,
        media=list(paths),
        directions=[Direction(d) for d in directions],
    )


async def _generate(
    settings: Settings,
    inputs: PromptInput,
    *,
    name: str,
    tier: ModelTier,
    interval: float | None,
    timeout: float | None,
    enrich: bool,
) -> TourResult:
    async with make_client(settings) as client:
        workflow = TourWorkflow(
            client,
            settings,
            poll_interval=interval,
            poll_timeout=timeout,
            enrich=enrich,
            on_state=_state,
            on_progress=_progress,
        )
        try:
            return await workflow.run(inputs, display_name=name, model_tier=tier)
        finally:
            if workflow.handle is not None:
                click.echo(f"\n📋 Operation ID: {workflow.handle.operation_id}")


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--text", help="Generate from a text description.")
@click.option("--image", help="Generate from a single image (path or URL).")
@click.option("--images", is_flag=True, help="Generate from multiple images given as arguments.")
@click.option("--video", help="Generate from a walkthrough video (path or URL).")
@click.option("--panorama", help="Generate from a 360° panorama (path or URL).")
@click.option(
    "--direction", "directions", multiple=True,
    type=click.Choice([d.value for d in Direction]),
    help="Compass direction per image, in order (with --images).",
)
@click.option("--name", default="Property Tour", show_default=True, help="Display name for the 3D world.")
@click.option("--draft", is_flag=True, help="Use the faster/cheaper draft model.")
@click.option("--interval", type=float, default=None, help="Seconds between status polls.")
@click.option("--timeout", type=float, default=None, help="Give up after this many seconds.")
@click.option("--output-dir", default=None, help="Where to write the result JSON.")
@click.option("--no-enrich", is_flag=True, help="Skip the world lookup for the canonical viewer URL.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.argument("paths", nargs=-1)
def main(text, image, images, video, panorama, directions, name, draft,
         interval, timeout, output_dir, no_enrich, verbose, paths):
    """3D Property Tour Generator."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose or settings.DEBUG else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        inputs = build_inputs(
            text=text, image=image, images=images, video=video,
            panorama=panorama, paths=paths, directions=directions,
        )
    except click.UsageError as e:
        click.echo(f"❌ {e.message}", err=True)
        click.echo("Run with --help for usage info", err=True)
        sys.exit(1)

    tier = ModelTier.DRAFT if draft else ModelTier.STANDARD
    try:
        result = asyncio.run(_generate(
            settings, inputs, name=name, tier=tier,
            interval=interval, timeout=timeout, enrich=not no_enrich,
        ))
    except (TourGenError, ValueError, OSError, httpx.HTTPError) as e:
        click.echo(f"\n❌ Error: {e}", err=True)
        sys.exit(1)

    click.echo("\n✅ 3D World Generated!")
    click.echo("━" * 50)
    click.echo(f"🌍 World ID: {result.world_id}")
    click.echo(f"🔗 View: {result.view_url}")
    click.echo("📤 Share this link with your client!")

    path = save_tour(result, output_dir or settings.TOURS_DIR)
    click.echo(f"💾 Saved to: {path}")


if __name__ == "__main__":
    main()
