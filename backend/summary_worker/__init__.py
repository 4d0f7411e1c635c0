"""Video summary worker: URL in, transcript and structured summary out."""
