import argparse
import time
from collections import deque

import numpy as np

from game_logic import InvalidDimension, LifeGrid

# --- Simulation Constants ---
BOARD_SIZE = 2 ** 7 # Side of the region a renderer shows
BOARD_OVERSIZE = 2 # Board is larger than the shown region so its edges look alive
UPDATE_INTERVAL = 500 # ms between generations
MIN_UPDATE_INTERVAL = 125
MAX_HISTORY_SIZE = 10
STATS_HISTORY_SIZE = 20
DEFAULT_FPS = 60

END_STATES = ("Stable", "Dead", "Oscillating")


class GameTimer:
    """Repeating timer that gates how often the board advances."""

    def __init__(self, interval_ms=UPDATE_INTERVAL):
        if interval_ms <= 0:
            raise ValueError(f"Timer interval must be positive, got {interval_ms}")
        self.interval_ms = interval_ms
        self.elapsed_ms = 0.0

    def tick(self, delta_seconds):
        """Adds elapsed time; returns True if at least one period completed."""
        if delta_seconds < 0:
            raise ValueError(f"Time delta must be non-negative, got {delta_seconds}")
        self.elapsed_ms += delta_seconds * 1000.0
        if self.elapsed_ms < self.interval_ms:
            return False
        # Leftover time carries into the next period
        self.elapsed_ms %= self.interval_ms
        return True

    def speed_up(self):
        new_interval = self.interval_ms / 2
        if new_interval < MIN_UPDATE_INTERVAL:
            return False
        self.interval_ms = new_interval
        return True

    def slow_down(self):
        self.interval_ms *= 2
        return True

    def reset(self):
        self.elapsed_ms = 0.0


class Simulation:
    """Drives a LifeGrid on a timer and tracks run statistics.

    Holds no rendering state: a renderer reads visible_cells() once per
    frame and maps alive/dead to whatever it draws.
    """

    def __init__(self, size=BOARD_SIZE, seed=None, oversize=BOARD_OVERSIZE,
                 interval_ms=UPDATE_INTERVAL):
        self.size = size
        self.oversize = oversize
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.timer = GameTimer(interval_ms)
        self.grid = LifeGrid(size * oversize, rng=self.rng)
        self.paused = True
        self.generation_count = 0
        self.simulation_state = "Paused"
        self.previous_grid_states = deque(maxlen=MAX_HISTORY_SIZE)
        self.live_cell_count_history = deque(maxlen=STATS_HISTORY_SIZE)
        self.generation_time_history = deque(maxlen=STATS_HISTORY_SIZE)

    @property
    def ended(self):
        return self.simulation_state in END_STATES

    def update(self, delta_seconds):
        """Called once per frame. Returns True if a generation was advanced."""
        if not self.timer.tick(delta_seconds):
            return False
        if self.paused:
            return False
        self.step()
        return True

    def step(self):
        """Advances one generation and checks for end states."""
        start_time = time.perf_counter()

        previous_grid = self.grid.current_state().copy()
        previous_grid_bytes = previous_grid.tobytes()

        self.grid.advance()
        self.generation_count += 1
        self.simulation_state = "Paused" if self.paused else "Running"

        new_grid = self.grid.current_state()
        population = self.grid.population()

        # --- Check for End States ---
        if population == 0:
            self.simulation_state = "Dead"
        elif np.array_equal(new_grid, previous_grid):
            self.simulation_state = "Stable"
        elif new_grid.tobytes() in self.previous_grid_states:
            self.simulation_state = "Oscillating"
            print("Oscillation detected!")
        self.previous_grid_states.append(previous_grid_bytes)

        if self.ended:
            self.paused = True
            print(f"Simulation ended: {self.simulation_state} at generation {self.generation_count}")

        self.live_cell_count_history.append(population)
        self.generation_time_history.append(time.perf_counter() - start_time)

    def toggle_pause(self):
        if self.paused and self.ended:
            print(f"Cannot resume, simulation ended ({self.simulation_state})")
            return

        self.paused = not self.paused
        if not self.paused:
            self.simulation_state = "Running"
            self.previous_grid_states.clear()
            print("Simulation Resumed")
        else:
            self.simulation_state = "Paused"
            print("Simulation Paused")

    def full_reset(self):
        print("Performing full grid reset.")
        self.grid = LifeGrid(self.size * self.oversize, rng=self.rng)
        self.timer.reset()
        self.paused = True
        self.generation_count = 0
        self.simulation_state = "Paused"
        self.previous_grid_states.clear()
        self.live_cell_count_history.clear()
        self.generation_time_history.clear()

    def visible_region(self):
        """Row/column range of the centered window a renderer shows."""
        offset = (self.grid.rows - self.size) // 2
        return range(offset, offset + self.size)

    def visible_cells(self):
        region = self.visible_region()
        return self.grid.current_state()[region.start:region.stop, region.start:region.stop]

    def stats(self):
        avg_gen_time = None
        if self.generation_time_history:
            avg_gen_time = sum(self.generation_time_history) / len(self.generation_time_history)
        pop_std_dev = None
        if len(self.live_cell_count_history) > 1:
            pop_std_dev = float(np.std(list(self.live_cell_count_history)))
        # Dead cells with exactly three live neighbors come alive next generation
        counts = self.grid.neighbor_counts()
        births_next = int(np.count_nonzero((counts == 3) & ~self.grid.current_state()))
        return {
            "population": self.grid.population(),
            "births_next": births_next,
            "avg_gen_time": avg_gen_time,
            "pop_std_dev": pop_std_dev,
        }

    def status_line(self):
        stats = self.stats()
        gen_time = "N/A" if stats["avg_gen_time"] is None else f"{stats['avg_gen_time']:.3f}s"
        stability = "N/A" if stats["pop_std_dev"] is None else f"{stats['pop_std_dev']:.2f}"
        return (f"{self.generation_count:06d} {self.simulation_state.upper():<11} "
                f"Population: {stats['population']} Next Births: {stats['births_next']} Avg Gen Time: {gen_time} "
                f"Pop Stability (StdDev): {stability}")


def build_parser():
    parser = argparse.ArgumentParser(description="Run Conway's Game of Life headless on a timer")
    parser.add_argument('--size', type=int, default=BOARD_SIZE,
                        help='side of the visible region; the board is twice as large')
    parser.add_argument('--interval', type=int, default=UPDATE_INTERVAL,
                        help='milliseconds between generations')
    parser.add_argument('--generations', type=int, default=100,
                        help='stop after this many generations (0 runs until an end state)')
    parser.add_argument('--seed', type=int, default=None, help='seed for the random fill')
    parser.add_argument('--fps', type=int, default=DEFAULT_FPS, help='frames per second of the update loop')
    return parser


def run(simulation, generations, fps=DEFAULT_FPS, clock=None, sleep=None):
    """Feeds real elapsed time into the simulation until it stops."""
    clock = clock or time.perf_counter
    sleep = sleep or time.sleep
    frame_time = 1.0 / fps
    last = clock()
    while not simulation.ended:
        if generations and simulation.generation_count >= generations:
            break
        sleep(frame_time)
        now = clock()
        if simulation.update(now - last):
            print(simulation.status_line())
        last = now
    return simulation.generation_count


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.fps <= 0:
        parser.error("--fps must be positive")
    if args.interval <= 0:
        parser.error("--interval must be positive")
    try:
        simulation = Simulation(args.size, seed=args.seed, interval_ms=args.interval)
    except InvalidDimension as e:
        parser.error(str(e))

    print(f"Board {simulation.grid.rows}x{simulation.grid.cols}, "
          f"showing {args.size}x{args.size}, population {simulation.grid.population()}")
    simulation.toggle_pause()
    run(simulation, args.generations, args.fps)
    print(simulation.status_line())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
