"""
Routers module - HTTP endpoints around the bot core.

- webhooks: trigger a registered webhook directly, list webhooks
- messages: route a chat message through the bot, AI usage stats
"""
