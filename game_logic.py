from collections import namedtuple

import numpy as np
import scipy.signal

MIN_DIMENSION = 4
DEFAULT_FILL = 0.5

# Clockwise from top-left: TL, TM, TR, MR, BR, BM, BL, ML
NEIGHBOR_OFFSETS = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, 1),
    (1, 1), (1, 0), (1, -1),
    (0, -1),
)

NEIGHBOR_KERNEL = np.array([[1, 1, 1],
                            [1, 0, 1],
                            [1, 1, 1]], dtype=int)

Coord = namedtuple("Coord", ["row", "col"])


class InvalidDimension(ValueError):
    """Raised when a board side is smaller than MIN_DIMENSION."""
    def __init__(self, rows, cols):
        self.rows = rows
        self.cols = cols
        super().__init__(
            f"Board dimension must be at least {MIN_DIMENSION}, got {rows}x{cols}")


def neighbors(row, col):
    """Yields the Moore neighbors of (row, col) in clockwise order from top-left.

    Coordinates with a negative row or column are skipped. The upper bounds
    are unknown here, so callers must drop anything past the board edge
    themselves (see neighbors_within).
    """
    if row < 0 or col < 0:
        raise ValueError(f"Origin must be non-negative, got ({row}, {col})")
    for d_row, d_col in NEIGHBOR_OFFSETS:
        if row == 0 and d_row < 0:
            continue  # no top arc on the first row
        if col == 0 and d_col < 0:
            continue
        yield Coord(row + d_row, col + d_col)


def neighbors_within(row, col, rows, cols):
    """Same as neighbors(), limited to the [0, rows) x [0, cols) board."""
    for nbr in neighbors(row, col):
        if nbr.row < rows and nbr.col < cols:
            yield nbr


def cell_fate(alive, count):
    """Applies Conway's rule to one cell given its live neighbor count."""
    if not alive:
        return count == 3
    # Under- and overpopulation both kill
    return count == 2 or count == 3


def random_board(rows, cols, fill=DEFAULT_FILL, rng=None):
    """Returns a rows x cols boolean board, each cell alive with probability `fill`."""
    if not 0.0 <= fill <= 1.0:
        raise ValueError(f"Fill probability must lie in [0, 1], got {fill}")
    if rng is None:
        rng = np.random.default_rng()
    return rng.random((rows, cols)) < fill


def count_live_neighbors_manual(grid, row, col):
    """Counts the live neighbors of (row, col); cells beyond the edge count as dead."""
    rows, cols = grid.shape
    count = 0
    for nbr in neighbors_within(row, col, rows, cols):
        if grid[nbr.row, nbr.col]:
            count += 1
    return count


def count_live_neighbors_convolve(grid):
    """Counts live neighbors for every cell at once using 2D convolution."""
    # 'fill' pads with dead cells, so the board does not wrap around
    return scipy.signal.convolve2d(np.asarray(grid, dtype=int), NEIGHBOR_KERNEL,
                                   mode='same', boundary='fill', fillvalue=0)


def update_grid_logic(grid):
    """Computes the next generation of any rectangular board cell by cell."""
    grid = np.asarray(grid, dtype=bool)
    rows, cols = grid.shape
    new_grid = np.zeros_like(grid)
    for r in range(rows):
        for c in range(cols):
            live_neighbors = count_live_neighbors_manual(grid, r, c)
            new_grid[r, c] = cell_fate(grid[r, c], live_neighbors)
    return new_grid


def _neighbor_table(rows, cols):
    """Flat neighbor indices for every cell, padded with the sentinel index rows*cols."""
    sentinel = rows * cols
    table = np.full((rows * cols, len(NEIGHBOR_OFFSETS)), sentinel, dtype=np.intp)
    for r in range(rows):
        for c in range(cols):
            idx = [nbr.row * cols + nbr.col for nbr in neighbors_within(r, c, rows, cols)]
            table[r * cols + c, :len(idx)] = idx
    return table


class LifeGrid:
    """A bounded Game of Life board with two preallocated, swapped buffers.

    Each buffer is a flat boolean array with one extra trailing cell that is
    never written and always dead. Neighbor lookups that fall off the board
    point at it, which lets a whole generation be counted with one gather.
    """

    def __init__(self, dimension, fill=DEFAULT_FILL, seed=None, rng=None):
        _check_dimensions(dimension, dimension)
        if rng is None:
            rng = np.random.default_rng(seed)
        self._setup(random_board(dimension, dimension, fill, rng))

    @classmethod
    def from_array(cls, cells):
        """Builds a grid whose first generation is a copy of `cells`."""
        cells = np.asarray(cells, dtype=bool)
        if cells.ndim != 2:
            raise ValueError(f"Board must be two-dimensional, got shape {cells.shape}")
        _check_dimensions(*cells.shape)
        grid = cls.__new__(cls)
        grid._setup(cells)
        return grid

    def _setup(self, cells):
        self._rows, self._cols = cells.shape
        size = self._rows * self._cols
        self._buffers = [np.zeros(size + 1, dtype=bool), np.zeros(size + 1, dtype=bool)]
        self._buffers[0][:size] = cells.ravel()
        self._current = 0
        self._table = _neighbor_table(self._rows, self._cols)
        self._gathered = np.empty(self._table.shape, dtype=bool)
        self._counts = np.empty(size, dtype=np.uint8)
        self._mask = np.empty(size, dtype=bool)
        self._views = [self._make_view(buf) for buf in self._buffers]
        self.generation = 0

    def _make_view(self, buf):
        view = buf[:-1].reshape(self._rows, self._cols)
        view.flags.writeable = False
        return view

    @property
    def rows(self):
        return self._rows

    @property
    def cols(self):
        return self._cols

    @property
    def shape(self):
        return (self._rows, self._cols)

    def current_state(self):
        """Read-only view of the current generation (no copy)."""
        return self._views[self._current]

    def scratch_state(self):
        """Read-only view of the buffer the next generation will be written into."""
        return self._views[1 - self._current]

    def is_alive(self, row, col):
        return bool(self.current_state()[row, col])

    def population(self):
        return int(np.count_nonzero(self.current_state()))

    def neighbor_counts(self):
        """Live neighbor count of every cell in the current generation.

        Computed independently of advance() by convolution, so it also serves
        as a cross-check of the neighbor table.
        """
        return count_live_neighbors_convolve(self.current_state())

    def advance(self):
        """Advances the board by exactly one generation."""
        current = self._buffers[self._current]
        scratch = self._buffers[1 - self._current]
        size = self._rows * self._cols

        # Every index is in range (the sentinel included); clip avoids buffering `out`
        np.take(current, self._table, out=self._gathered, mode='clip')
        self._gathered.sum(axis=1, dtype=np.uint8, out=self._counts)

        alive = current[:size]
        nxt = scratch[:size]
        # Dead cells are born on 3, live cells survive on 2 or 3
        np.equal(self._counts, 3, out=nxt)
        np.equal(self._counts, 2, out=self._mask)
        self._mask &= alive
        nxt |= self._mask

        self._current = 1 - self._current
        self.generation += 1

    def __repr__(self):
        return (f"LifeGrid(rows={self._rows}, cols={self._cols}, "
                f"generation={self.generation}, population={self.population()})")


def _check_dimensions(rows, cols):
    if rows < MIN_DIMENSION or cols < MIN_DIMENSION:
        raise InvalidDimension(rows, cols)
