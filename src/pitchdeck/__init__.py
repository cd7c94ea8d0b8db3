"""
Pitch Deck - turn Notion company records into Google Slides decks.

A tool server exposes record fetching, company lookup and deck assembly to a
language model, and a chat client relays the conversation between a person
and the model.
"""

__version__ = "0.1.0"
