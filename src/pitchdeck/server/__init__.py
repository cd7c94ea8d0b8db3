"""Tool server over the Model Context Protocol."""
