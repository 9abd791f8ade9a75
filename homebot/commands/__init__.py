"""
Built-in bot commands.

Each module exposes register(registry) and is picked up by
homebot.ai.actions.loader.load_actions().
"""
