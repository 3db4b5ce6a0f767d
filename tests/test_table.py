import pathlib
import random
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rummikub.errors import (
    DrawSourceError,
    IllegalMoveError,
    MeldThresholdError,
    MissingTileError,
    PoolEmptyError,
    UnknownSetError,
    UnsupportedUndoError,
    WrongTurnError,
)
from rummikub.meld import MeldKind
from rummikub.move import Move
from rummikub.player import Player
from rummikub.rules import Ruleset
from rummikub.table import Table
from rummikub.tiles import Color, Tile
from rummikub.turn import Turn


def _run(color, start, length):
    return [Tile(start + i, color) for i in range(length)]


def _table(rack=(), pool=(), rng_seed=0, post_meld=False):
    players = [Player(name) for name in ("A", "B", "C", "D")]
    players[0].is_turn = True
    players[0].is_post_meld = post_meld
    players[0].set_rack(rack)
    for other in players[1:]:
        other.set_rack([Tile(1, Color.BLACK)])
    return Table(players, list(pool), Ruleset(), random.Random(rng_seed))


def _ids(tiles):
    return [t.id for t in tiles]


def _layout(table):
    return {set_id: [t.id for t in meld.tiles] for set_id, meld in table.sets.items()}


def test_table_needs_four_players():
    with pytest.raises(ValueError):
        Table([Player("A"), Player("B"), Player("C")])


def test_next_turn_wraps_around():
    table = _table(rack=[Tile(3, Color.RED)])
    order = [table.next_turn().display_name for _ in range(4)]
    assert order == ["B", "C", "D", "A"]
    assert sum(p.is_turn for p in table.players) == 1
    assert table.get_current_turn_player_index()[0] == 0


def test_current_player_requires_someone_holding_the_turn():
    table = _table()
    table.players[0].is_turn = False
    with pytest.raises(WrongTurnError):
        table.get_current_turn_player()


def test_draw_moves_tile_from_pool_to_rack():
    pool = _run(Color.BLUE, 1, 5)
    table = _table(rack=[Tile(9, Color.RED)], pool=pool)
    before = table.tile_count()
    tile = table.draw(table.players[0])
    assert tile in pool
    assert tile in table.players[0].rack
    assert tile not in table.pool
    assert len(table.pool) == 4
    assert table.tile_count() == before


def test_draw_preconditions():
    table = _table(rack=[Tile(9, Color.RED)])
    with pytest.raises(PoolEmptyError):
        table.draw(table.players[0])
    table.pool.append(Tile(2, Color.RED))
    with pytest.raises(WrongTurnError):
        table.draw(table.players[1])
    table.rng = None
    with pytest.raises(DrawSourceError):
        table.draw(table.players[0])


def test_create_set_registers_meld():
    tiles = _run(Color.RED, 5, 3)
    table = _table(rack=tiles + [Tile(1, Color.BLUE)])
    meld = table.create_set(table.players[0], _ids(tiles))
    assert table.get_set(meld.id) is meld
    assert meld.get_order() == MeldKind.RUN
    assert len(table.players[0].rack) == 1


def test_create_set_with_missing_tile_leaves_rack_untouched():
    tiles = _run(Color.RED, 5, 3)
    table = _table(rack=tiles[:2])
    with pytest.raises(MissingTileError):
        table.create_set(table.players[0], _ids(tiles))
    assert table.players[0].rack == tuple(tiles[:2])
    assert not table.sets


def test_create_set_rejects_repeated_tile():
    tiles = _run(Color.RED, 5, 3)
    table = _table(rack=tiles)
    with pytest.raises(MissingTileError):
        table.create_set(table.players[0], [tiles[0].id, tiles[0].id, tiles[1].id])
    assert len(table.players[0].rack) == 3


def test_add_tile_to_set_failures_keep_state():
    run = _run(Color.RED, 5, 3)
    eight = Tile(8, Color.RED)
    table = _table(rack=run + [eight], post_meld=True)
    player = table.players[0]
    meld = table.create_set(player, _ids(run))

    with pytest.raises(MissingTileError):
        table.add_tile_to_set(player, meld.id, Tile(8, Color.RED).id, 3)
    with pytest.raises(UnknownSetError):
        table.add_tile_to_set(player, "no-such-set", eight.id, 3)
    with pytest.raises(IllegalMoveError):
        table.add_tile_to_set(player, meld.id, eight.id, 5)
    assert player.rack == (eight,)

    table.add_tile_to_set(player, meld.id, eight.id, 3)
    assert [t.value for t in meld.tiles] == [5, 6, 7, 8]
    assert player.has_won()


def _table_with_run(length=5):
    run = _run(Color.BLUE, 3, length)
    table = _table(rack=run + [Tile(1, Color.RED)], post_meld=True)
    meld = table.create_set(table.players[0], _ids(run))
    return table, meld, run


def test_removing_middle_tile_splits_set():
    table, meld, run = _table_with_run()
    tile = table.remove_tile_from_set(meld.id, run[2].id)
    assert tile is run[2]
    assert len(table.sets) == 2
    assert meld.tiles == run[:2]
    (tail,) = [m for m in table.sets.values() if m is not meld]
    assert tail.tiles == run[3:]


@pytest.mark.parametrize("position", [0, 4])
def test_removing_an_end_shrinks_in_place(position):
    table, meld, run = _table_with_run()
    table.remove_tile_from_set(meld.id, run[position].id)
    assert list(table.sets) == [meld.id]
    assert len(meld) == 4


def test_removing_last_tile_deletes_set():
    table, meld, run = _table_with_run(length=3)
    for tile in run:
        table.remove_tile_from_set(meld.id, tile.id)
    assert not table.sets


def test_remove_tile_errors():
    table, meld, run = _table_with_run()
    with pytest.raises(UnknownSetError):
        table.remove_tile_from_set("no-such-set", run[0].id)
    with pytest.raises(MissingTileError):
        table.remove_tile_from_set(meld.id, Tile(3, Color.BLUE).id)


def test_move_tile_between_sets():
    table, meld, run = _table_with_run(length=4)
    group_tiles = [Tile(6, Color.RED), Tile(6, Color.ORANGE)]
    for t in group_tiles:
        table.players[0].add_tile_to_rack(t)
    group = table.create_set(table.players[0], _ids(group_tiles))
    table.move_tile_to_set(meld.id, group.id, run[3].id, 0)
    assert group.validate() == MeldKind.GROUP
    assert meld.validate() == MeldKind.RUN


def test_move_to_unknown_target_changes_nothing():
    table, meld, run = _table_with_run()
    before = _layout(table)
    with pytest.raises(UnknownSetError):
        table.move_tile_to_set(meld.id, "no-such-set", run[2].id, 0)
    assert _layout(table) == before


def test_move_with_bad_index_restores_split():
    table, meld, run = _table_with_run()
    other = Tile(9, Color.RED)
    table.players[0].add_tile_to_rack(other)
    target = table.create_set(table.players[0], [other.id])
    before = _layout(table)
    with pytest.raises(IllegalMoveError):
        table.move_tile_to_set(meld.id, target.id, run[2].id, 7)
    assert _layout(table) == before


def test_undo_create_returns_tiles():
    run = _run(Color.RED, 5, 3)
    table = _table(rack=run)
    turn = Turn(table.players[0])
    applied = table.play(turn, Move.create(_ids(run)))
    assert applied.set_id in table.sets
    table.undo_move(table.players[0], turn.undo())
    assert not table.sets
    assert set(table.players[0].rack) == set(run)


def test_undo_draw_returns_tile_to_pool():
    table = _table(rack=[Tile(9, Color.RED)], pool=_run(Color.BLACK, 1, 3))
    turn = Turn(table.players[0])
    applied = table.play(turn, Move.draw())
    assert table.players[0].find_tile(applied.tile_id) is not None
    table.undo_move(table.players[0], applied)
    assert len(table.pool) == 3
    assert len(table.players[0].rack) == 1


def test_undo_add_returns_tile_to_rack():
    table, meld, run = _table_with_run(length=3)
    eight = Tile(6, Color.BLUE)
    table.players[0].add_tile_to_rack(eight)
    turn = Turn(table.players[0])
    applied = table.play(turn, Move.add(meld.id, eight.id, 3))
    table.undo_move(table.players[0], applied)
    assert meld.tiles == run
    assert eight in table.players[0].rack


def test_undo_move_rejoins_split_origin():
    table, meld, run = _table_with_run()
    extra = [Tile(5, Color.RED), Tile(5, Color.BLACK)]
    for t in extra:
        table.players[0].add_tile_to_rack(t)
    group = table.create_set(table.players[0], _ids(extra))
    before = _layout(table)

    turn = Turn(table.players[0])
    applied = table.play(turn, Move.move(meld.id, group.id, run[2].id, 1))
    assert applied.origin_index == 2
    assert applied.split_set_id in table.sets
    assert len(table.sets) == 3

    table.undo_move(table.players[0], applied)
    assert _layout(table) == before


def test_undo_move_restores_emptied_origin():
    table, meld, run = _table_with_run()
    lone = table.create_set(table.players[0], [table.players[0].rack[0].id])
    before = _layout(table)

    turn = Turn(table.players[0])
    applied = table.play(turn, Move.move(lone.id, meld.id, lone.tiles[0].id, 0))
    assert lone.id not in table.sets
    assert applied.origin_index == 0

    table.undo_move(table.players[0], applied)
    assert _layout(table) == before


def test_undo_move_with_bad_origin_index_changes_nothing():
    table, meld, run = _table_with_run()
    extra = [Tile(5, Color.RED), Tile(5, Color.BLACK)]
    for t in extra:
        table.players[0].add_tile_to_rack(t)
    group = table.create_set(table.players[0], _ids(extra))
    table.move_tile_to_set(meld.id, group.id, run[4].id, 0)
    before = _layout(table)

    bogus = Move.move(meld.id, group.id, run[4].id, 0).resolved(origin_index=9)
    with pytest.raises(IllegalMoveError):
        table.undo_move(table.players[0], bogus)
    assert _layout(table) == before


def test_abandon_keeps_move_that_cannot_be_undone():
    table, meld, run = _table_with_run()
    turn = Turn(table.players[0])
    stale = Move.add("gone-set", run[0].id, 0)
    turn.moves.append(stale)
    with pytest.raises(UnknownSetError):
        table.abandon_turn(turn)
    assert turn.moves == [stale]


def test_lifted_tile_can_go_back_into_a_set():
    table, meld, run = _table_with_run()
    turn = Turn(table.players[0])
    table.play(turn, Move.remove(meld.id, run[4].id))
    assert table.holding == [run[4]]

    table.play(turn, Move.add(meld.id, run[4].id, 4))
    assert not table.holding
    assert meld.tiles == run
    assert table.end_turn(turn) is table.players[1]


def test_lifted_tile_can_start_a_new_set():
    table, meld, run = _table_with_run()
    player = table.players[0]
    sevens = [Tile(7, Color.RED), Tile(7, Color.BLACK)]
    for t in sevens:
        player.add_tile_to_rack(t)
    turn = Turn(player)
    table.play(turn, Move.remove(meld.id, run[4].id))
    applied = table.play(turn, Move.create([run[4].id] + _ids(sevens)))
    assert applied.held_tile_ids == (run[4].id,)
    assert table.get_set(applied.set_id).validate() == MeldKind.GROUP
    assert table.end_turn(turn) is table.players[1]


def test_undo_sends_lifted_tile_back_to_holding():
    table, meld, run = _table_with_run()
    player = table.players[0]
    rack_before = player.rack
    turn = Turn(player)
    table.play(turn, Move.remove(meld.id, run[4].id))
    applied = table.play(turn, Move.add(meld.id, run[4].id, 4))
    table.undo_move(player, turn.undo())
    assert applied.held_tile_ids == (run[4].id,)
    assert table.holding == [run[4]]
    assert player.rack == rack_before


def test_undo_remove_is_unsupported():
    table, meld, run = _table_with_run()
    turn = Turn(table.players[0])
    applied = table.play(turn, Move.remove(meld.id, run[0].id))
    assert table.holding == [run[0]]
    with pytest.raises(UnsupportedUndoError):
        table.undo_move(table.players[0], applied)
    with pytest.raises(UnsupportedUndoError):
        table.abandon_turn(turn)
    assert turn.moves == [applied]


def test_lifted_tiles_block_end_of_turn():
    table, meld, run = _table_with_run()
    turn = Turn(table.players[0])
    table.play(turn, Move.remove(meld.id, run[0].id))
    with pytest.raises(IllegalMoveError):
        table.end_turn(turn)


def test_play_rejects_inactive_player():
    table = _table(rack=[Tile(9, Color.RED)], pool=[Tile(1, Color.RED)])
    with pytest.raises(WrongTurnError):
        table.play(Turn(table.players[1]), Move.draw())


def test_opening_meld_of_thirty_is_not_enough():
    run = _run(Color.RED, 9, 3)
    table = _table(rack=run + [Tile(1, Color.BLUE)])
    turn = Turn(table.players[0])
    table.play(turn, Move.create(_ids(run)))
    with pytest.raises(MeldThresholdError) as excinfo:
        table.end_turn(turn)
    assert excinfo.value.points == 30
    assert not table.players[0].is_post_meld
    assert table.players[0].is_turn


def test_opening_meld_of_thirty_one_passes():
    four_run = _run(Color.RED, 4, 4)
    three_run = _run(Color.BLUE, 2, 3)
    table = _table(rack=four_run + three_run + [Tile(1, Color.BLUE)])
    turn = Turn(table.players[0])
    table.play(turn, Move.create(_ids(four_run)))
    table.play(turn, Move.create(_ids(three_run)))
    nxt = table.end_turn(turn)
    assert table.players[0].is_post_meld
    assert nxt is table.players[1]
    assert turn.length() == 0


def test_opening_meld_must_be_valid_sets():
    tiles = [Tile(13, Color.RED), Tile(12, Color.BLUE), Tile(11, Color.BLACK)]
    table = _table(rack=tiles + [Tile(1, Color.BLUE)])
    turn = Turn(table.players[0])
    table.play(turn, Move.create(_ids(tiles)))
    with pytest.raises(IllegalMoveError):
        table.end_turn(turn)


def test_opening_turn_with_non_create_move_fails():
    table, meld, run = _table_with_run()
    table.players[0].is_post_meld = False
    turn = Turn(table.players[0])
    # Logged directly to bypass the turn gate.
    turn.moves.append(Move.remove(meld.id, run[0].id))
    with pytest.raises(IllegalMoveError):
        table.end_turn(turn)


def test_draw_ends_opening_turn():
    table = _table(rack=[Tile(9, Color.RED)], pool=[Tile(1, Color.RED)])
    turn = Turn(table.players[0])
    table.play(turn, Move.draw())
    assert table.end_turn(turn) is table.players[1]
    assert not table.players[0].is_post_meld


def test_post_meld_turn_validates_whole_table():
    table, meld, run = _table_with_run()
    turn = Turn(table.players[0])
    table.play(turn, Move.move(meld.id, meld.id, run[4].id, 0))
    with pytest.raises(IllegalMoveError):
        table.end_turn(turn)
    table.abandon_turn(turn)
    assert meld.tiles == run
    assert table.end_turn(turn) is table.players[1]
