"""UI constants for todobi."""

# Notification settings
MAX_CONTENT_LENGTH_IN_NOTIFICATION = 30
NOTIFICATION_TIMEOUT_MEDIUM = 3
NOTIFICATION_TIMEOUT_LONG = 5

# Screen stack sizes
SCREEN_STACK_SIZE_MAIN_APP = 1

# Worker group for push/pull
SYNC_WORKER_GROUP = "sync"

# Messages shown when sync onboarding ends without a sync
SYNC_SKIPPED_MESSAGE = "GitHub sync skipped - you can sync later with 'G' or 'g'"
SYNC_CONTINUE_LOCAL_MESSAGE = "Continuing with local tasks - sync later with 'G' or 'g'"
