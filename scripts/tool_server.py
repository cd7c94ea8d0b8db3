"""Launch the pitch deck tool server on stdio.

Pass this file to the chat client:

    pitchdeck-chat scripts/tool_server.py
"""

from pitchdeck.server.app import main

if __name__ == "__main__":
    main()
