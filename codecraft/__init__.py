"""CodeCraft: sandboxed, agent-driven text file editing over MCP."""

__version__ = "2.0.0"
