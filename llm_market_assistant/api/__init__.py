"""HTTP API for chats and market analysis replies."""
