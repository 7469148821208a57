"""
CLI play mode for Siege Tactics.

Human vs greedy AI on the hex battlefield. ASCII renderer with fog of war,
command entry, AI turn display, full game loop.

Usage: python play_cli.py [seed]
"""

import random
import sys
from typing import List, Optional

from ai_policy import AIUnitReport, run_ai_turn
from models import Hex, Owner, VisibilityState
from orders import attack_at, end_turn, move_selected_unit, select_unit
from state import GameState, Phase, initialize_game, setup_logging

# ---------------------------------------------------------------------------
# ASCII Hex Renderer
# ---------------------------------------------------------------------------


def tile_char(game: GameState, h: Hex) -> str:
    """Display character for one hex from the player's point of view."""
    tile = game.battlefield.get_tile(h)
    if tile is None:
        return " "

    visibility = tile.visibility[Owner.PLAYER]
    if visibility == VisibilityState.UNEXPLORED:
        return " "

    # Units stranded outside the zone are still drawn
    occupant = tile.occupant
    if occupant is not None:
        if occupant.owner == Owner.PLAYER:
            return "P"
        if visibility == VisibilityState.VISIBLE:
            return "A"

    if not tile.is_in_bounds:
        return "x"
    if tile.obstacle is not None:
        return "#" if tile.obstacle.is_impassable else "%"
    return "." if visibility == VisibilityState.VISIBLE else ","


def render_board(game: GameState) -> str:
    """Render the hexagonal board row by row, indenting rows for the hex offset."""
    radius = game.battlefield.radius
    lines = []
    for r in range(-radius, radius + 1):
        q_min = max(-radius, -r - radius)
        q_max = min(radius, -r + radius)
        row = " ".join(tile_char(game, Hex(q, r)) for q in range(q_min, q_max + 1))
        lines.append(f"{r:>3} " + " " * abs(r) + row)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Status and AI display
# ---------------------------------------------------------------------------


def show_status(game: GameState):
    """Show turn info, shrink radius, the board and the player's units."""
    print(f"\n=== TURN {game.turn_count} ===  (playable radius {game.shrink_radius})")
    print()
    print(render_board(game))
    print()
    print("Your units:")
    for u in game.player_units:
        flags = []
        if u.has_moved:
            flags.append("moved")
        if u.has_attacked:
            flags.append("attacked")
        tag = f"  [{', '.join(flags)}]" if flags else ""
        lo, hi = u.attack_range()
        print(f"  {u.id}  {u.weapon.value}  hp={u.health}/{u.max_health}  pos={u.position}  range={lo}-{hi}{tag}")

    seen = [u for u in game.ai_units if game.vision.is_unit_visible_to(Owner.PLAYER, u)]
    if seen:
        print("Enemies in sight:")
        for u in seen:
            print(f"  {u.id}  {u.weapon.value}  hp={u.health}  pos={u.position}")


def show_ai_turn(reports: List[AIUnitReport]):
    print("\n--- Enemy turn ---")
    for report in reports:
        if report.moved_to is not None:
            print(f"  {report.unit_id} moved {report.moved_from} -> {report.moved_to}")
        for a in report.attacks:
            tag = " (DESTROYED)" if a.target_destroyed else ""
            print(f"  {report.unit_id} hit {a.target_id} for {a.damage}{tag}")
    if not any(r.moved_to or r.attacks for r in reports):
        print("  (nothing happened)")


# ---------------------------------------------------------------------------
# Command entry
# ---------------------------------------------------------------------------


def parse_coords(tokens: List[str]) -> Optional[Hex]:
    if len(tokens) < 2:
        return None
    try:
        return Hex(int(tokens[0]), int(tokens[1]))
    except ValueError:
        return None


def handle_command(game: GameState, raw: str) -> Optional[str]:
    """
    Apply one command line. Returns "end" or "quit" when the player's turn
    is over, None to keep reading commands.
    """
    tokens = raw.strip().lower().split()
    if not tokens:
        return None
    cmd, args = tokens[0], tokens[1:]

    if cmd == "quit":
        return "quit"

    if cmd == "end":
        if end_turn(game):
            return "end"
        print("  Cannot end the turn now.")
        return None

    if cmd == "select":
        if not args:
            print("  Usage: select <unit_id>")
        elif select_unit(game, args[0]):
            print(f"  Selected {args[0]}: {len(game.valid_move_hexes)} moves, "
                  f"{len(game.valid_attack_hexes)} hexes in range")
        else:
            print(f"  Cannot select {args[0]}.")
        return None

    if cmd in ("move", "attack"):
        target = parse_coords(args)
        if target is None:
            print(f"  Usage: {cmd} <q> <r>")
            return None
        intent = move_selected_unit if cmd == "move" else attack_at
        if intent(game, target):
            print(f"  -> {cmd} {target}")
        else:
            print(f"  Cannot {cmd} to {target}.")
        return None

    print(f"  Unknown command: {cmd}")
    return None


def player_turn(game: GameState) -> bool:
    """Read commands until the turn ends. Returns False if the player quit."""
    show_status(game)
    print("\nCommands:")
    print("  select <unit_id>   - select one of your units")
    print("  move <q> <r>       - move the selected unit")
    print("  attack <q> <r>     - fire at the enemy on that hex")
    print("  end                - end your turn")
    print("  quit               - leave the match")

    while game.phase == Phase.PLAYER_TURN:
        outcome = handle_command(game, input("cmd> "))
        if outcome == "quit":
            return False
        if outcome == "end":
            break
    return True


# ---------------------------------------------------------------------------
# Main Game Loop
# ---------------------------------------------------------------------------


def main():
    setup_logging("WARNING")
    print("=" * 50)
    print("  SIEGE TACTICS  -  CLI Play Mode")
    print("=" * 50)

    seed = int(sys.argv[1]) if len(sys.argv) > 1 else random.randint(0, 99999)
    print(f"\nMap seed: {seed}")
    game = initialize_game(seed=seed)

    while not game.is_over:
        if game.phase == Phase.PLAYER_TURN:
            if not player_turn(game):
                print("\nMatch abandoned.")
                return
        if game.phase == Phase.AI_TURN:
            show_ai_turn(run_ai_turn(game))

    print("\n" + "=" * 50)
    if game.winner == Owner.PLAYER:
        print(f"  VICTORY! Enemies destroyed: {game.enemies_destroyed_by_player}")
    else:
        print("  DEFEAT. Your siege engines were destroyed.")
    print(f"  Final turn: {game.turn_count}")
    print("=" * 50)


if __name__ == "__main__":
    main()
