"""codeflow: component maps for TypeScript, React, Python and C# source trees."""

__version__ = "0.1.0"
