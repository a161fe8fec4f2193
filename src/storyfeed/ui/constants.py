# Pagination constants
POSTS_PER_PAGE = 12  # Number of posts to load per page

# Filter constants
FILTER_DEBOUNCE_MS = 300  # Quiet period before filter input triggers a reload

# Windowing constants
POST_ITEM_HEIGHT = 6  # Rows occupied by one post card
POST_OVERSCAN = 2  # Cards rendered above and below the visible area

# Infinite scroll constants
SCROLL_ROOT_MARGIN = 10  # Rows of lookahead before the end of the list
SCROLL_THRESHOLD = 0.1  # Fraction of the sentinel that must be visible
SENTINEL_HEIGHT = 1

# Post card constants
EXCERPT_LENGTH = 120

SORT_OPTIONS = [("Newest first", "newest"), ("Oldest first", "oldest"), ("Title A-Z", "title")]
