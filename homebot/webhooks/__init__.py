"""
Home Assistant webhook definitions.

Each module exposes register(registry) and is picked up by
homebot.ai.actions.loader.load_actions(). The external webhook ID defaults
to the action id and can be overridden per action with
WEBHOOK_ID_OVERRIDES or <ACTION_ID>_WEBHOOK_ID.
"""
