"""CLI entry point for ResumeFlow (serve, worker, apply, analyze)."""
import sys

from resumeflow.cli import main

if __name__ == "__main__":
    sys.exit(main())
