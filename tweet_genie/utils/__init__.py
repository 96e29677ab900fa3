from tweet_genie.utils.request_cache import RequestCache, create_request_cache_key
