"""Configuration constants for twoauth."""

# OAuth 1.0a endpoints
TWITTER_API_HOST = "https://api.twitter.com"
REQUEST_TOKEN_URL = f"{TWITTER_API_HOST}/oauth/request_token"
AUTHORIZE_URL = f"{TWITTER_API_HOST}/oauth/authorize"
ACCESS_TOKEN_URL = f"{TWITTER_API_HOST}/oauth/access_token"

# REST resources (relative to API_BASE_URL)
API_BASE_URL = f"{TWITTER_API_HOST}/1.1/"
VERIFY_CREDENTIALS_PATH = "account/verify_credentials.json"
RETWEET_PATH = "statuses/retweet/{tweet_id}.json"
FOLLOW_PATH = "friendships/create.json"

# Out-of-band (PIN) callback marker
OOB_CALLBACK = "oob"

DEFAULT_HTTP_TIMEOUT = 30.0  # seconds
