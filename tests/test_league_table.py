# tests/test_league_table.py

from matchday_backend.services.league_table import (
    calculate_points_from_score, ensure_table_for_season, get_sorted_standings,
    record_champion, serialize_table, update_table_for_match
)

SEASON, NAME = "2030", "Test League"


def fold(session, results):
    table = None
    for home, away, home_goals, away_goals in results:
        table = update_table_for_match(session, SEASON, NAME, home.id, away.id, home_goals, away_goals)
    return table


def test_points():
    assert calculate_points_from_score(2, 1) == (3, 0)
    assert calculate_points_from_score(0, 3) == (0, 3)
    assert calculate_points_from_score(1, 1) == (1, 1)


def test_single_result(session, clubs):
    x, y = clubs[0], clubs[1]
    table = fold(session, [(x, y, 3, 1)])

    rows = get_sorted_standings(session, table)
    assert [r.club_id for r in rows] == [x.id, y.id]
    assert (rows[0].played, rows[0].won, rows[0].gf, rows[0].ga, rows[0].gd, rows[0].points) == (1, 1, 3, 1, 2, 3)
    assert (rows[1].played, rows[1].lost, rows[1].gf, rows[1].ga, rows[1].gd, rows[1].points) == (1, 1, 1, 3, -2, 0)


def test_hand_computed_totals(session, clubs):
    a, b, c, d = clubs
    table = fold(session, [
        (a, b, 2, 2),
        (c, d, 1, 0),
        (a, c, 0, 1),
        (b, d, 3, 0),
        (d, a, 1, 4),
        (b, c, 1, 1),
    ])

    rows = {r.club_id: r for r in get_sorted_standings(session, table)}
    # (played, won, drawn, lost, gf, ga, points)
    assert (rows[a.id].played, rows[a.id].won, rows[a.id].drawn, rows[a.id].lost,
            rows[a.id].gf, rows[a.id].ga, rows[a.id].points) == (3, 1, 1, 1, 6, 4, 4)
    assert (rows[b.id].won, rows[b.id].drawn, rows[b.id].gf, rows[b.id].ga, rows[b.id].points) == (1, 2, 6, 3, 5)
    assert (rows[c.id].won, rows[c.id].drawn, rows[c.id].gf, rows[c.id].ga, rows[c.id].points) == (2, 1, 3, 1, 7)
    assert (rows[d.id].lost, rows[d.id].gf, rows[d.id].ga, rows[d.id].points) == (3, 1, 8, 0)

    assert [r.club_id for r in get_sorted_standings(session, table)] == [c.id, b.id, a.id, d.id]
    assert [r.position for r in get_sorted_standings(session, table)] == [1, 2, 3, 4]


def test_goal_difference_separates_equal_points(session, clubs):
    a, b, c, d = clubs
    table = fold(session, [(a, b, 1, 0), (c, d, 5, 0)])
    assert [r.club_id for r in get_sorted_standings(session, table)][:2] == [c.id, a.id]


def test_goals_for_breaks_equal_goal_difference(session, clubs):
    a, b, c, d = clubs
    # Delta and Bravo both +1, Delta scored more
    table = fold(session, [(d, a, 2, 1), (b, c, 1, 0)])
    assert [r.club_id for r in get_sorted_standings(session, table)] == [d.id, b.id, a.id, c.id]


def test_name_breaks_a_complete_tie(session, clubs):
    a, b = clubs[0], clubs[1]
    # Entered away side first to prove order is not insertion order
    table = fold(session, [(b, a, 1, 1)])
    assert [r.club_id for r in get_sorted_standings(session, table)] == [a.id, b.id]


def test_ensure_table_grows_without_touching_existing_rows(session, clubs):
    a, b, c, d = clubs
    fold(session, [(a, b, 1, 0)])

    table = ensure_table_for_season(session, SEASON, NAME, [a.id, b.id, c.id, d.id])
    table = ensure_table_for_season(session, SEASON, NAME, [c.id, d.id])

    rows = {r.club_id: r for r in get_sorted_standings(session, table)}
    assert len(rows) == 4
    assert rows[a.id].points == 3
    assert rows[c.id].played == 0


def test_champion_closes_the_table(session, clubs):
    table = ensure_table_for_season(session, SEASON, NAME, [c.id for c in clubs])
    record_champion(session, table, clubs[2].id)

    payload = serialize_table(session, table)
    assert payload["completed"] is True
    assert payload["champion_club_id"] == clubs[2].id
    assert [row["club"]["name"] for row in payload["standings"]] == ["Alpha FC", "Bravo FC", "Charlie FC", "Delta FC"]
