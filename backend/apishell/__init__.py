"""
apishell: HTTP Application Shell
================================

What: A preconfigured FastAPI application: proxy trust, CORS, body parsing
      limits, compression, request tracing, and an error chain that logs
      failed requests and answers them with a uniform JSON body.
Who:  Services pass their own router to `apishell.main.create_app()`.
"""

__version__ = "1.0.0"
