"""Video generation pipeline: validation, composition, render submission and tracking."""
