"""GUI configuration and constants."""

from stockworks.apps.stock_studio.core.models import (
    ASPECT_RATIOS,
    MAX_PROMPT_COUNT,
    MIN_PROMPT_COUNT,
)

# Page paths (relative to app.py, for st.switch_page)
PROMPTS_PAGE = "pages/1_✨_Prompts.py"
IMAGES_PAGE = "pages/2_🖼️_Images.py"
METADATA_PAGE = "pages/3_🏷️_Metadata.py"

# Form limits
PROMPT_COUNT_RANGE = (MIN_PROMPT_COUNT, MAX_PROMPT_COUNT)
ASPECT_RATIO_OPTIONS = list(ASPECT_RATIOS)

# UI Configuration
GALLERY_COLUMNS = 2
THUMBNAIL_MAX_SIZE = 480
QUEUE_REFRESH_INTERVAL_MS = 1500  # progress polling while the queue runs
REQUEST_WAIT_PADDING_SECONDS = 30  # added to the request timeout for blocking calls
BILLING_DOCS_URL = "https://ai.google.dev/gemini-api/docs/billing"
