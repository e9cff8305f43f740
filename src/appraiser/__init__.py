"""AGREE II guideline appraisal over pluggable LLM vendors."""

__version__ = "0.1.0"
