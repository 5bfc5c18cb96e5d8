"""Core constants: cache and queue key prefixes, notification texts.

Single source of truth for key structure shared by the API, the worker and
any other process reading the same Redis.
"""

# Result cache
CACHE_PREFIX_MERCHANT_VERIFICATION = "merchant_verification"
VERIFICATION_CACHE_TTL_SECONDS = 3600

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Job queue (key layout: verification_queue:<queue name>:<part>)
QUEUE_KEY_PREFIX = "verification_queue"

# Notification messages sent once per completed job
NOTIFICATION_VERIFICATION_SUCCEEDED = "Verification successful!"
NOTIFICATION_VERIFICATION_FAILED = "Verification failed!"

# Result messages returned by the verification service
RESULT_MESSAGE_VERIFIED = "Verified successfully"
RESULT_MESSAGE_NOT_VERIFIED = "Verification failed"
RESULT_MESSAGE_INTERNAL_ERROR = "Internal error during verification"
