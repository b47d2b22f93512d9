"""Constants and configuration values for moodwatch."""

# Sentiment scale
class SentimentConstants:
    """Constants for the 1-10 sentiment scale."""

    MIN_SCORE = 1.0
    MAX_SCORE = 10.0
    POSITIVE_MIN = 7.0  # score >= 7 is positive
    NEGATIVE_MAX = 4.0  # score < 4 is negative


# Alert thresholds
class AlertConstants:
    """Thresholds for channel and user alerts."""

    HIGH_AVG_SENTIMENT = 4.0  # avg below this -> high
    MEDIUM_AVG_SENTIMENT = 5.5  # avg below this -> medium
    USER_CRITICAL_MEAN = 3.0  # at-risk user below this -> critical

    UNKNOWN_CHANNEL_PREFIX = "channel-"
    CHANNEL_ID_LABEL_LENGTH = 8


# Dashboard rollups
class DashboardConstants:
    """Constants for the dashboard overview."""

    HEALTH_GOOD = 6.5
    HEALTH_FAIR = 4.5
    TREND_CHANGE_PCT = 2.0  # weekly change beyond +/- this is a direction
    NEUTRAL_BASELINE = 5.0


# Evidence extraction
class EvidenceConstants:
    """Constants for message evidence and word clouds."""

    MIN_WORD_LENGTH = 3
    MAX_WORDS = 50
    MAX_EXAMPLES = 3
    MAX_MESSAGES = 20
    NEGATIVE_DOMINANCE_RATIO = 1.5

    STOP_WORDS = frozenset([
        'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
        'that', 'this', 'is', 'are', 'was', 'were', 'been', 'have', 'has', 'had', 'do',
        'does', 'did', 'will', 'would', 'could', 'should', 'may', 'might', 'can', 'not',
        'all', 'any', 'some', 'more', 'most', 'much', 'many', 'few', 'little', 'big',
        'small', 'good', 'bad', 'new', 'old', 'first', 'last', 'long', 'short', 'high',
        'low', 'right', 'left', 'next', 'back', 'here', 'there', 'where', 'when', 'why',
        'how', 'what', 'who', 'which', 'than', 'then', 'now', 'just', 'only', 'also',
        'even', 'well', 'still', 'again', 'very', 'too', 'really', 'quite', 'pretty',
        'sure', 'maybe', 'probably', 'like', 'need', 'want', 'know', 'think', 'see',
        'get', 'go', 'come', 'take', 'make', 'give', 'use', 'work', 'say', 'tell', 'ask',
        'try', 'help',
    ])

    STRESS_WORDS = frozenset([
        'stress', 'tired', 'overwhelmed', 'frustrated', 'deadline', 'urgent',
        'problem', 'issue', 'difficult', 'hard',
    ])

    POSITIVE_WORDS = frozenset([
        'great', 'awesome', 'excellent', 'good', 'happy', 'success', 'win',
        'amazing', 'fantastic', 'love',
    ])


# File and Path Constants
class FileConstants:
    """Constants for file operations."""

    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    EXPORT_VERSION = "1.0.0"
