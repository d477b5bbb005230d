"""
SGC Proofreader - Bilingual translation review tool
===================================================
This package provides a Flask-based local web application for reviewing
translations sentence by sentence:
1. Edit a source sentence and its translation side by side
2. Ask Google Gemini to audit the pair or gloss it word by word
3. Track a review status and error category per sentence

Version: 1.0.0
"""

__version__ = "1.0.0"

from proofreader.app import create_app, run_server

__all__ = ["create_app", "run_server", "__version__"]
