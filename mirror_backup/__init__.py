"""Mirror every repository of a Bitbucket workspace to local bare repositories."""

__version__ = "0.1.0"
