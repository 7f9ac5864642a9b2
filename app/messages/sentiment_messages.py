# app/messages/sentiment_messages.py

# ✅ Positive
SENTIMENT_ANALYSIS_SUCCESS = "Sentiment analysis completed successfully."
SENTIMENT_STATUS_RETRIEVED = "Review sentiment status retrieved."
SENTIMENT_SUMMARY_RETRIEVED = "Event sentiment summary retrieved."
SENTIMENT_LIST_RETRIEVED = "Event review sentiments retrieved."
WORKER_STATUS_RETRIEVED = "Sentiment worker status retrieved."
WORKER_STARTED = "Worker started"
WORKER_STOPPED = "Worker stopped"


# ❌ Errors
REVIEW_NOT_FOUND = "Review not found"
EVENT_NOT_FOUND = "Event not found"
REVIEW_ID_REQUIRED = "Review ID is required"
EVENT_ID_REQUIRED = "Event ID is required"
ORGANIZER_ID_REQUIRED = "Organizer ID is required"
NOT_EVENT_OWNER = "You can only view sentiment for your own events"
JOB_ALREADY_EXISTS = "A sentiment job already exists for this review"
EMPTY_TEXT = "Sentiment text is empty"
NO_SENTIMENT_RESULTS = "Sentiment API returned no sentiment results"
INVALID_LABEL = "Sentiment API returned an invalid label"
