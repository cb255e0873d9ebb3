"""LearnTerms service core: ordered course content, answer analytics, rate limiting."""

__version__ = "0.1.0"
