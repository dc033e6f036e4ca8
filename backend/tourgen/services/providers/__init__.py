"""World generation provider clients.

Each provider follows the async generation pattern:
  upload media → POST create job → poll operation → fetch result
"""
