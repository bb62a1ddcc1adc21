import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(APP_DIR, 'data')
CONFIG_DIR = os.environ.get('CINELOG_CONFIG_DIR', os.path.join(APP_DIR, 'config'))
DB_FILE = os.path.join(CONFIG_DIR, 'cinelog.db')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'settings.yaml')

CINELOG_DB = os.environ.get('DATABASE_URL', 'sqlite:///' + DB_FILE)

BUILD_VERSION = '20261019_0900'

TMDB_BASE_URL = 'https://api.themoviedb.org/3'
TMDB_IMAGE_BASE_URL = 'https://image.tmdb.org/t/p/'

DEFAULT_SETTINGS = {
    "tmdb": {
        "api_key": "",
        "access_token": "",
        "base_url": TMDB_BASE_URL,
        "image_base_url": TMDB_IMAGE_BASE_URL,
        "timeout": 10,
        "language": "en-US",
    },
    "analytics": {
        "batch_size": 10,
        # 0 enriches every distinct title referenced by the logs
        "max_enriched_titles": 20,
    },
    "social": {
        "search_limit": 20,
    },
}

# Media kinds
MEDIA_MOVIE = 'movie'
MEDIA_SERIES = 'series'
MEDIA_TYPES = (MEDIA_MOVIE, MEDIA_SERIES)
# TMDB path segment for each media kind
TMDB_MEDIA_PATHS = {
    MEDIA_MOVIE: 'movie',
    MEDIA_SERIES: 'tv',
}
MEDIA_TYPE_ALIASES = {
    'movie': MEDIA_MOVIE,
    'series': MEDIA_SERIES,
    'tv': MEDIA_SERIES,
}

# Ratings
RATING_MIN = 0.5
RATING_MAX = 5.0
RATING_STEP = 0.5
RATING_BUCKETS = [x / 2 for x in range(1, 11)]  # 0.5 .. 5.0

CATEGORY_RATING_FIELDS = [
    'plot_rating',
    'cinematography_rating',
    'acting_rating',
    'soundtrack_rating',
    'pacing_rating',
    'casting_rating',
]
CATEGORY_LABELS = {
    'plot_rating': 'Plot',
    'cinematography_rating': 'Cinematography',
    'acting_rating': 'Acting',
    'soundtrack_rating': 'Soundtrack',
    'pacing_rating': 'Pacing',
    'casting_rating': 'Casting',
}


class Platform:
    NETFLIX = 'Netflix'
    DISNEY_PLUS = 'Disney+'
    PRIME_VIDEO = 'Prime Video'
    HULU = 'Hulu'
    HBO_MAX = 'HBO Max'
    APPLE_TV_PLUS = 'Apple TV+'
    PARAMOUNT_PLUS = 'Paramount+'
    PEACOCK = 'Peacock'
    STREAMING_SITE = 'Streaming Site'
    CINEMA = 'Cinema'
    OTHER = 'Other'

    ALL = (NETFLIX, DISNEY_PLUS, PRIME_VIDEO, HULU, HBO_MAX, APPLE_TV_PLUS,
           PARAMOUNT_PLUS, PEACOCK, STREAMING_SITE, CINEMA, OTHER)


class WatchDuration:
    ONE_SITTING = 'One sitting'
    FEW_DAYS = 'A few days'
    ABOUT_A_WEEK = 'About a week'
    FEW_WEEKS = 'A few weeks'
    OVER_A_MONTH = 'Over a month'

    ALL = (ONE_SITTING, FEW_DAYS, ABOUT_A_WEEK, FEW_WEEKS, OVER_A_MONTH)


class DiscoverySource:
    FRIEND_FAMILY = 'Friend/Family'
    SOCIAL_MEDIA = 'Social Media'
    STREAMING_RECOMMENDATION = 'Streaming Recommendation'
    TRAILER = 'Trailer'
    REVIEW_ARTICLE = 'Review/Article'
    JUST_BROWSING = 'Just Browsing'
    OTHER = 'Other'

    ALL = (FRIEND_FAMILY, SOCIAL_MEDIA, STREAMING_RECOMMENDATION, TRAILER,
           REVIEW_ARTICLE, JUST_BROWSING, OTHER)


class Rewatchability:
    DEFINITELY = 'Definitely'
    PROBABLY = 'Probably'
    MAYBE = 'Maybe'
    UNLIKELY = 'Unlikely'
    NO_WAY = 'No way'

    ALL = (DEFINITELY, PROBABLY, MAYBE, UNLIKELY, NO_WAY)


class WatchedWith:
    SOLO = 'Solo'
    PARTNER = 'Partner'
    FRIENDS = 'Friends'
    FAMILY = 'Family'
    GROUP = 'Group'

    ALL = (SOLO, PARTNER, FRIENDS, FAMILY, GROUP)


TIMES_WATCHED_CAPPED = '6+'
TIMES_WATCHED_VALUES = ('1', '2', '3', '4', '5', TIMES_WATCHED_CAPPED)
# "6+" is counted as exactly six views
TIMES_WATCHED_CAPPED_VIEWS = 6

# Contextual fields: (vocabulary, fallback for unknown text or None if closed)
CONTEXT_FIELDS = {
    'watched_on': (Platform.ALL, Platform.OTHER),
    'watch_duration': (WatchDuration.ALL, None),
    'discovered_via': (DiscoverySource.ALL, DiscoverySource.OTHER),
    'rewatchability': (Rewatchability.ALL, None),
    'watched_with': (WatchedWith.ALL, None),
    'times_watched': (TIMES_WATCHED_VALUES, None),
}

# Runtime histogram, upper bounds exclusive
RUNTIME_BUCKETS = [
    ('<90', 0, 90),
    ('90-119', 90, 120),
    ('120-149', 120, 150),
    ('150+', 150, None),
]

MONTHLY_WINDOW = 12
TOP_GENRES_LIMIT = 10
TOP_PEOPLE_LIMIT = 5
TOP_CAST_SIZE = 5

# Friendship
FRIENDSHIP_PENDING = 'pending'
FRIENDSHIP_ACCEPTED = 'accepted'

USERNAME_MIN_LENGTH = 3
USERNAME_PATTERN = r'^[a-z0-9_]+$'
