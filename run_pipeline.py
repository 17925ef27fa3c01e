#!/usr/bin/env python3
"""
Main CLI entrypoint for the video generation pipeline.

This is a convenience wrapper that imports and runs the pipeline CLI.
"""

import sys

from videogen.pipelines.run_generation import main

if __name__ == "__main__":
    sys.exit(main())
