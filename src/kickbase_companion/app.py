"""
Kickbase Companion Streamlit Web Application.

Player detail page and league dashboard.
Run with: streamlit run src/kickbase_companion/app.py
"""

import sys
from pathlib import Path

# Add src to path for direct execution
_src_path = Path(__file__).parent.parent
if str(_src_path) not in sys.path:
    sys.path.insert(0, str(_src_path))

import pandas as pd
import streamlit as st

from kickbase_companion.analysis import (
    SPLIT_MATCHDAY,
    PlayerHeader,
    PlayerReport,
    build_player_header,
    build_player_report,
    market_rows,
    ranking_rows,
    resolve_image_url,
    standings_rows,
)
from kickbase_companion.analysis.report import MatchdayRow
from kickbase_companion.api import (
    APICache,
    CachedKickbaseClient,
    KickbaseAPIError,
    SyncKickbaseClient,
)
from kickbase_companion.config import get_settings
from kickbase_companion.data import SelectedLeague, get_database
from kickbase_companion.preferences import LeagueSelectionStore, get_league_selection

# Fitness badge per status code
STATUS_BADGES = {0: "🟢", 1: "🔴", 2: "🟡"}

# Page config
st.set_page_config(
    page_title="Kickbase Companion",
    page_icon="⚽",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_db():
    """Get cached database connection."""
    return get_database(get_settings().database.path)


def get_league_store() -> LeagueSelectionStore:
    return get_league_selection(get_settings().app.preferences_file)


def get_query_param(key: str, default: str = "-") -> str:
    """Read a query parameter with a default."""
    value = st.query_params.get(key)
    return value if value else default


def main():
    """Main application entry point."""
    st.sidebar.title("⚽ Kickbase Companion")
    page = st.sidebar.radio("Navigate", ["Player", "League Dashboard"])

    store = get_league_store()
    if page == "Player":
        show_player(store)
    else:
        show_league_dashboard(store)


# =============================================================================
# Player Page
# =============================================================================


def _odds_text(row: MatchdayRow, heuristic: bool) -> str:
    odds = row.heuristic_odds if heuristic else row.market_odds
    if odds is None:
        return row.outcome or "-"
    win, draw, loss = odds.as_percentages()
    return f"W {win}% D {draw}% L {loss}%"


def report_table(rows: list[MatchdayRow], show_projection: bool) -> pd.DataFrame:
    """Matchday rows as a table with matchdays as columns."""
    data = {}
    for row in rows:
        column = {
            "Date": row.date or "-",
            "W/D/L-P": _odds_text(row, heuristic=False),
            "W/D/L-W": _odds_text(row, heuristic=True),
            "Opponent": row.opponent or "-",
            "Result": row.result or "-",
            "Place": row.venue or "-",
            "Points": row.points if row.points is not None else "-",
        }
        if show_projection:
            column["Projection"] = (
                row.projected_points if row.projected_points is not None else "-"
            )
        column.update({
            "Market value": row.market_value_formatted or "-",
            "Diff": row.market_value_diff_formatted or "-",
            "Rating": row.rating or "-",
            "S11": row.start_eleven or "-",
            "Min": row.minutes if row.minutes is not None else "-",
            "Status": row.status or "-",
            "Goals": row.goals if row.goals is not None else "-",
            "Assists": row.assists if row.assists is not None else "-",
            "Yellow": row.yellow if row.yellow is not None else "-",
            "Red": row.red if row.red is not None else "-",
        })
        data[f"MD {row.matchday}"] = column
    return pd.DataFrame(data).astype(str)


def report_chart(rows: list[MatchdayRow]) -> pd.DataFrame:
    """Points and market value per matchday for charting."""
    return pd.DataFrame(
        {
            "Points": [row.points for row in rows],
            "Market value (M)": [
                row.market_value / 1_000_000 if row.market_value is not None else None
                for row in rows
            ],
        },
        index=[row.matchday for row in rows],
    )


def show_report_section(title: str, rows: list[MatchdayRow], report: PlayerReport) -> None:
    st.subheader(title)
    if not rows:
        st.info("No matchdays in this section.")
        return

    chart = report_chart(rows)
    col1, col2 = st.columns(2)
    with col1:
        st.bar_chart(chart["Points"])
    with col2:
        st.line_chart(chart["Market value (M)"])

    st.dataframe(
        report_table(rows, report.reference_matchday > 0),
        use_container_width=True,
    )


def show_player_header(header: PlayerHeader, league_image: str | None) -> None:
    """Image, name, club, fitness badge and key facts."""
    col1, col2 = st.columns([1, 5])
    with col1:
        st.image(header.image_url, width=96)
    with col2:
        st.title(header.name)
        if header.club:
            st.caption(header.club)
        badge = STATUS_BADGES.get(header.status, "🟡")
        st.markdown(f"{badge} **{header.status_label}**")
        if league_image:
            st.image(resolve_image_url(league_image), width=48)

    cols = st.columns(6)
    cols[0].metric("Position", header.position)
    market_value = header.market_value_formatted or "-"
    if header.trend:
        market_value = f"{market_value} {header.trend}"
    cols[1].metric("Market value", market_value)
    cols[2].metric("Points", header.points)
    cols[3].metric("Ø Points", header.average_points)
    cols[4].metric("Player ID", header.player_id)
    cols[5].metric("Club ID", header.club_id or "-")


def show_player(store: LeagueSelectionStore):
    """Player detail page."""
    params = {key: st.query_params[key] for key in st.query_params.keys()}
    player_id = get_query_param("id")
    team_id = get_query_param("teamId")
    league_id = get_query_param("leagueId", "")

    with st.sidebar:
        player_id = st.text_input("Player ID", value="" if player_id == "-" else player_id)
        team_id = st.text_input("Club ID", value="" if team_id == "-" else team_id)
        season = st.text_input("Season (empty = latest)", value="")
        reference = st.slider(
            "Project after matchday (0 = off)", 0, SPLIT_MATCHDAY - 1, 0
        )

    if not player_id:
        st.info("Enter a player ID in the sidebar.")
        return

    db = get_db()
    player_row = db.get_player(player_id)
    if not team_id and player_row:
        team_id = player_row["club_id"]

    header = build_player_header(player_id, team_id, player_row, params)
    show_player_header(header, store.league_image(league_id))

    if not team_id:
        st.warning("Unknown club for this player. Enter a club ID.")
        return

    try:
        stats, fixtures, values = db.load_player_snapshot(
            player_id, team_id, season or None
        )
    except Exception as e:
        st.error(f"Failed to load player data: {e}")
        return

    report = build_player_report(player_id, team_id, stats, fixtures, values, reference)
    if not report.has_data:
        st.warning("No data found for this player.")
        return

    show_report_section(
        f"Player Analysis (MD 1-{SPLIT_MATCHDAY - 1})", report.analysis_rows, report
    )
    show_report_section(
        f"Player Prognosis (MD {SPLIT_MATCHDAY}-34)", report.prognosis_rows, report
    )

    news = db.load_player_news(player_id)
    if news:
        st.subheader("News")
        for item in news[:10]:
            title = f"[{item.title}]({item.link})" if item.link else item.title
            st.markdown(f"**{item.date} {item.time}** {title}")
            if item.comprehension:
                st.caption(item.comprehension)


# =============================================================================
# League Dashboard
# =============================================================================


def _rows_frame(rows: list[dict], image_column: str) -> pd.DataFrame:
    """Display rows as a table with the image column first."""
    frame = pd.DataFrame(rows)
    if frame.empty:
        return frame
    return frame[[image_column, *[c for c in frame.columns if c != image_column]]]


def show_league_tables(
    client: CachedKickbaseClient, league_id: str, token: str, force: bool
) -> None:
    """Schedule, ranking, market and competition table of a league."""
    image_config = {
        "Image": st.column_config.ImageColumn("", width="small"),
        "Logo": st.column_config.ImageColumn("", width="small"),
    }
    schedule_tab, ranking_tab, market_tab, table_tab = st.tabs(
        ["Schedule", "Ranking", "Market", "Table"]
    )

    with ranking_tab:
        with st.spinner("Fetching ranking..."):
            ranking = client.get_league_ranking(league_id, token, force_refresh=force)
        rows = ranking_rows(ranking)
        if rows:
            st.dataframe(
                _rows_frame(rows, "Image"),
                column_config=image_config,
                hide_index=True,
                use_container_width=True,
            )
        else:
            st.info("No managers in this ranking.")

    with market_tab:
        with st.spinner("Fetching market..."):
            rows = market_rows(client.get_market(league_id, token))
        if rows:
            st.dataframe(
                _rows_frame(rows, "Image"),
                column_config=image_config,
                hide_index=True,
                use_container_width=True,
            )
        else:
            st.info("No players on the market.")

    with table_tab:
        with st.spinner("Fetching table..."):
            teams = client.get_competition_table(token, force_refresh=force)
        st.dataframe(
            _rows_frame(standings_rows(teams), "Logo"),
            column_config=image_config,
            hide_index=True,
            use_container_width=True,
        )

    with schedule_tab:
        with st.spinner("Fetching matches..."):
            schedule = client.get_league_matches(league_id, token, force_refresh=force)
        st.json(schedule)


def show_league_dashboard(store: LeagueSelectionStore):
    """League selection, schedule, ranking, market and standings."""
    st.title("🏆 League Dashboard")
    settings = get_settings()

    token = st.text_input("Kickbase token", type="password")
    selected = store.get()
    cache = APICache(settings.cache.dir, ttls={"matches": settings.cache.matches_ttl})
    client = CachedKickbaseClient(SyncKickbaseClient.from_settings(settings.kickbase), cache)

    try:
        league_options: dict[str, str] = {}
        if token:
            try:
                for league in client.get_leagues(token):
                    league_id = str(league.get("i", league.get("id", "")))
                    if league_id:
                        league_options[league_id] = str(league.get("n", league_id))
            except KickbaseAPIError as e:
                st.warning(f"Could not list leagues: {e.message}")

        col1, col2 = st.columns(2)
        with col1:
            if league_options:
                ids = list(league_options)
                default = ids.index(selected.id) if selected and selected.id in ids else 0
                league_id = st.selectbox(
                    "League", ids, index=default, format_func=league_options.get
                )
            else:
                league_id = st.text_input(
                    "League ID", value=selected.id if selected else ""
                )
        with col2:
            image = st.text_input(
                "League image", value=(selected.image or "") if selected else ""
            )

        if st.button("Select league") and league_id:
            store.set(SelectedLeague(id=league_id, image=image or None))
            st.success(f"Selected league {league_id}")

        if not (league_id and token):
            st.info("Enter a token and a league ID to load league data.")
            return

        force = st.checkbox("Bypass cache")
        try:
            show_league_tables(client, league_id, token, force)
        except KickbaseAPIError as e:
            st.error(f"Error fetching league data: {e.message}")
    finally:
        client.close()


if __name__ == "__main__":
    main()
