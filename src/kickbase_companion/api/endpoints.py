"""
Kickbase API endpoint definitions.

The Kickbase API is undocumented and unofficial - URLs may change.
"""

# Base URL
KICKBASE_BASE_URL = "https://api.kickbase.com/v4"

# Player, club and user images are served from the CDN
CDN_BASE_URL = "https://kickbase.b-cdn.net/"

# The provider rejects requests from user agents it considers outdated
DEFAULT_USER_AGENT = "Kickbase/iOS 6.9.0"

# Bundesliga
DEFAULT_COMPETITION_ID = "1"

# All endpoints below require a Bearer token

# Leagues of the logged-in user
LEAGUES = "{base_url}/leagues/selection"

# League Matches - Match schedule of a league's competition
LEAGUE_MATCHES = "{base_url}/leagues/{league_id}/matches"

# League Ranking - Managers with points and rank
LEAGUE_RANKING = "{base_url}/leagues/{league_id}/ranking"

# Transfer market of a league
LEAGUE_MARKET = "{base_url}/leagues/{league_id}/market"

# Competition table (e.g. Bundesliga standings)
COMPETITION_TABLE = "{base_url}/competitions/{competition_id}/table"


def _base(base_url: str) -> str:
    return base_url.rstrip("/")


def get_leagues_url(base_url: str = KICKBASE_BASE_URL) -> str:
    """Get URL for the user's leagues."""
    return LEAGUES.format(base_url=_base(base_url))


def get_league_matches_url(
    league_id: str, base_url: str = KICKBASE_BASE_URL
) -> str:
    """Get URL for a league's match schedule."""
    return LEAGUE_MATCHES.format(base_url=_base(base_url), league_id=league_id)


def get_league_ranking_url(
    league_id: str, base_url: str = KICKBASE_BASE_URL
) -> str:
    """Get URL for a league's manager ranking."""
    return LEAGUE_RANKING.format(base_url=_base(base_url), league_id=league_id)


def get_league_market_url(
    league_id: str, base_url: str = KICKBASE_BASE_URL
) -> str:
    """Get URL for a league's transfer market."""
    return LEAGUE_MARKET.format(base_url=_base(base_url), league_id=league_id)


def get_competition_table_url(
    competition_id: str = DEFAULT_COMPETITION_ID, base_url: str = KICKBASE_BASE_URL
) -> str:
    """Get URL for a competition's table."""
    return COMPETITION_TABLE.format(
        base_url=_base(base_url), competition_id=competition_id
    )


def user_image_url(user_id: str, image: str | None) -> str | None:
    """
    Absolute URL for a manager image from the ranking.

    Bare file names live below the user's folder, other relative paths below
    the CDN root. Absolute URLs are kept.
    """
    if not image or image.startswith("http"):
        return image
    if "/" not in image:
        return f"{CDN_BASE_URL}user/{user_id}/{image}"
    return f"{CDN_BASE_URL}{image.lstrip('/')}"
