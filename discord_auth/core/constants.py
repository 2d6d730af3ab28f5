"""Stable string keys shared with the account store and the external session."""

PROVIDER_NAME = "discord"
PROVIDER_DISPLAY_NAME = "Discord"
ACCESS_TOKEN_NAME = "access_token"

# Standard claims on the external and local principals
CLAIM_NAME_IDENTIFIER = "sub"
CLAIM_NAME = "name"
CLAIM_EMAIL = "email"

# Discord-specific claims
CLAIM_DISCORD_AVATAR_URL = "urn:discord:avatar:url"
CLAIM_DISCORD_GLOBAL_NAME = "urn:discord:global_name"
CLAIM_DISCORD_LOCALE = "urn:discord:locale"
CLAIM_DISCORD_VERIFIED = "urn:discord:verified"

EXTERNAL_RETURN_URL_PROPERTY = "returnUrl"

EXTERNAL_AUTHENTICATION_TYPE = "Identity.External"
APPLICATION_AUTHENTICATION_TYPE = "Identity.Application"

GUILD_PAGE_SIZE = 200
