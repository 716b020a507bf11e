"""Helpers for the external collaborators: git, the GitHub API and badges."""
