"""
yawn

AI-drafted commit messages for the working tree: stage, generate, commit, push.
"""

__version__ = "1.0.0"

APP_NAME = "yawn"
