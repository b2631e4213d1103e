"""
fdsim: Financial Decision Simulator

A seeded, card-based engine for yearly personal-finance decisions:
play up to two cards a year, survive one weighted event, and let
cashflow, debt interest, markets and burnout run their course.

Modules
-------
- rng         : Seeded Mulberry32 stream shared by a whole run
- state       : Player state, defaults and net worth
- ledger      : Unlocked / exhausted / cooldown bookkeeping
- cards       : Card catalog, hand drawing and card play
- events      : Yearly event catalog and weighted selection
- economy     : Passive yearly updates (cashflow, interest, market, drift)
- simulation  : Year step, run driver and interactive game
- policies    : Built-in card choice policies
- modes       : Starting setups
- analytics   : History tables and batch statistics
- serialization : JSON persistence of runs
"""

__version__ = "0.1.0"

from .cards import CARDS, CARDS_BY_ID, Card, CardResult, apply_card, draw_hand
from .events import EVENTS, EventOutcome
from .rng import create_rng
from .simulation import Game, RunResult, Snapshot, create_game, run_simulation, step_year
from .state import PlayerState, create_initial_state, net_worth
from . import utils
