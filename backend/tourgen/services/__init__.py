"""Tour generation services: upload, submit, poll, resolve."""
