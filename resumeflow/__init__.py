"""ResumeFlow: resume matching and queued, best-effort job application form filling."""

__version__ = "0.1.0"
