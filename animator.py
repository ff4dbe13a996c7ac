"""
Pendulum Trail Animation
Draw the chain and its tip trail with matplotlib, live or as a video
"""

import colorsys
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation, FFMpegWriter
from matplotlib.colors import to_rgba
from matplotlib.patches import Circle
from matplotlib.widgets import Button

from chain import Chain
from errors import ConfigurationError
from frame_driver import FrameDriver, ManualScheduler
from parameters import SimulationConfig, load_parameters

logger = logging.getLogger(__name__)

PIVOT_RADIUS = 4.0
PIVOT_COLOR = '#999999'
PIVOT_EMPHASIS_RADIUS = 6.0
PIVOT_EMPHASIS_COLOR = '#ffffff'
TRAIL_ALPHA = 0.8

_CSS_FUNCTION = re.compile(r'^\s*(rgba?|hsla?)\s*\(([^)]*)\)\s*$', re.IGNORECASE)


def _channel(text: str, scale: float) -> float:
    text = text.strip()
    if text.endswith('%'):
        return float(text[:-1]) / 100.0
    return float(text) / scale


def _clip(value: float) -> float:
    return min(1.0, max(0.0, value))


def parse_color(tag: str) -> Tuple[float, float, float, float]:
    """RGBA tuple for a colour tag, accepting CSS rgb()/rgba()/hsl()/hsla()."""
    match = _CSS_FUNCTION.match(tag)
    if match is None:
        return to_rgba(tag)

    kind = match.group(1).lower()
    parts = [p for p in re.split(r'[\s,/]+', match.group(2).strip()) if p]
    if len(parts) not in (3, 4):
        raise ValueError(f"Cannot parse colour {tag!r}")
    alpha = _channel(parts[3], 1.0) if len(parts) == 4 else 1.0

    if kind.startswith('rgb'):
        r, g, b = (_channel(p, 255.0) for p in parts[:3])
    else:
        hue = float(parts[0].strip().rstrip('deg')) % 360.0
        saturation = _channel(parts[1], 100.0)
        lightness = _channel(parts[2], 100.0)
        r, g, b = colorsys.hls_to_rgb(hue / 360.0, lightness, saturation)

    return _clip(r), _clip(g), _clip(b), _clip(alpha)


class MatplotlibRenderer:
    """
    Draws one run on ``ax``.

    Segment lines live in a side table keyed by segment index; trail fill
    circles are the handles stored in the trail buffer.
    """

    def __init__(self, ax):
        self.ax = ax
        self.segment_lines: Dict[int, Any] = {}
        self.trail_line = None
        self.pivot = None
        self.fill_radius = 20.0
        self.fill_color = parse_color('rgba(0,0,0,0.2)')
        self.fills: Set[Circle] = set()

    def prepare(self, config: SimulationConfig) -> None:
        """Reject colour tags matplotlib cannot draw, before any artist is touched."""
        tags = [("lineColor", config.line_color), ("lineFill", config.line_fill)]
        tags += [(f"colors[{i}]", tag) for i, tag in enumerate(config.colors)]
        for key, tag in tags:
            try:
                parse_color(tag)
            except ValueError as err:
                raise ConfigurationError(f"'{key}' is not a colour: {tag!r}") from err

    def begin_run(self, chain: Chain, config: SimulationConfig) -> None:
        for line in self.segment_lines.values():
            line.remove()
        self.segment_lines.clear()
        if self.trail_line is not None:
            self.trail_line.remove()
            self.trail_line = None
        if self.pivot is not None:
            self.pivot.remove()
            self.pivot = None

        self.fill_radius = config.fill_radius
        self.fill_color = parse_color(config.line_fill)

        self.pivot = Circle(chain.pivot, PIVOT_RADIUS, color=PIVOT_COLOR, zorder=1)
        self.ax.add_patch(self.pivot)

        for k, segment in enumerate(chain.segments):
            line, = self.ax.plot(
                [], [], '-',
                color=parse_color(segment.color_tag),
                linewidth=segment.visual_width,
                solid_capstyle='round',
                zorder=2,
            )
            self.segment_lines[k] = line

        self.trail_line, = self.ax.plot(
            [], [], '-',
            color=parse_color(config.line_color),
            linewidth=config.line_width,
            alpha=TRAIL_ALPHA,
            zorder=3,
        )

        limit = max(1.0, config.reach() * 1.2)
        px, py = chain.pivot
        self.ax.set_xlim(px - limit, px + limit)
        # Screen orientation: positive y points down
        self.ax.set_ylim(py + limit, py - limit)

    def create_fill(self, point):
        circle = Circle(point, self.fill_radius, facecolor=self.fill_color, edgecolor='none', zorder=0)
        self.ax.add_patch(circle)
        self.fills.add(circle)
        return circle

    def remove_fill(self, handle) -> None:
        self.fills.discard(handle)
        handle.remove()

    def draw_frame(self, positions: np.ndarray, trail: np.ndarray) -> None:
        for k, line in self.segment_lines.items():
            line.set_data(positions[k:k + 2, 0], positions[k:k + 2, 1])
        if self.trail_line is not None:
            self.trail_line.set_data(trail[:, 0], trail[:, 1])
        self.ax.figure.canvas.draw_idle()

    def emphasize_pivot(self) -> None:
        self.pivot.set_radius(PIVOT_EMPHASIS_RADIUS)
        self.pivot.set_color(PIVOT_EMPHASIS_COLOR)

    def deemphasize_pivot(self) -> None:
        self.pivot.set_radius(PIVOT_RADIUS)
        self.pivot.set_color(PIVOT_COLOR)

    def artists(self) -> List[Any]:
        items = [self.pivot, self.trail_line] + list(self.segment_lines.values()) + list(self.fills)
        return [item for item in items if item is not None]


class TimerScheduler:
    """Single-shot canvas timers as the frame scheduling primitive."""

    def __init__(self, fig, interval: float = 1000 / 60):
        self.fig = fig
        self.interval = max(1, int(round(interval)))
        self._timers = set()

    def request_frame(self, callback: Callable[[], None]):
        timer = self.fig.canvas.new_timer(interval=self.interval)
        timer.single_shot = True

        def fire():
            self._timers.discard(timer)
            callback()

        timer.add_callback(fire)
        self._timers.add(timer)
        timer.start()
        return timer

    def cancel(self, timer) -> None:
        timer.stop()
        self._timers.discard(timer)


def _setup_figure(dpi: int = 100):
    fig = plt.figure(figsize=(16, 9), dpi=dpi, facecolor='black')
    ax = fig.add_subplot(111)
    ax.set_facecolor('black')
    ax.set_aspect('equal')
    ax.axis('off')
    return fig, ax


def animate_pendulum(
    query: Union[str, dict, None] = None,
    save_video: bool = False,
    video_filename: str = 'pendulum_trail.mp4',
    frames: int = 3600,
    fps: int = 60,
    seed: Optional[int] = None,
    config: Optional[SimulationConfig] = None,
) -> FrameDriver:
    """
    Animate the chain described by ``query``.

    Parameters
    ----------
    query : str or dict
        Parameter source passed to ``load_parameters``.
    save_video : bool
        Export ``frames`` ticks to ``video_filename`` instead of opening a window.
    frames : int
        Number of ticks written when exporting.
    fps : int
        Ticks per second, live and in the exported video.
    seed : int, optional
        Seed for random parameters; "Apply" draws new ones from the same stream.
    config : SimulationConfig, optional
        Already resolved parameters for the first run.
    """
    if save_video and frames <= 0:
        raise ValueError(f"frames must be positive to export a video, got {frames}")

    rng = np.random.default_rng(seed)
    if config is None:
        config = load_parameters(query, seed=rng)

    dpi = 100
    fig, ax = _setup_figure(dpi)
    renderer = MatplotlibRenderer(ax)

    if save_video:
        scheduler = ManualScheduler()
        driver = FrameDriver(scheduler, renderer)
        driver.reset(config)

        def update(frame):
            scheduler.run_pending()
            if (frame + 1) % 30 == 0:
                progress = 100 * (frame + 1) / frames
                print(f'Animating: {progress:.1f}%', end='\r')
            return renderer.artists()

        def init():
            """Initialize animation"""
            return renderer.artists()

        print(f"Saving {frames} frames to {video_filename}...")
        anim = FuncAnimation(fig, update, frames=frames, interval=1000 / fps, blit=False, init_func=init)
        writer = FFMpegWriter(fps=fps, bitrate=5000, extra_args=['-vcodec', 'libx264'])
        anim.save(video_filename, writer=writer, dpi=dpi)
        print("Video saved successfully!")
        plt.close(fig)
        return driver

    driver = FrameDriver(TimerScheduler(fig, 1000 / fps), renderer)
    driver.reset(config)

    def apply(_event=None):
        try:
            driver.reset(load_parameters(query, seed=rng))
        except ConfigurationError as err:
            logger.error("Keeping the current run: %s", err)

    button_ax = fig.add_axes([0.01, 0.01, 0.06, 0.04])
    apply_button = Button(button_ax, 'Apply', color='#333333', hovercolor='#555555')
    apply_button.label.set_color('white')
    apply_button.on_clicked(apply)

    last_size = [fig.canvas.get_width_height()]

    def on_resize(event):
        size = (event.width, event.height)
        if size != last_size[0]:
            last_size[0] = size
            apply()

    fig.canvas.mpl_connect('resize_event', on_resize)

    print("Displaying animation (close window to exit)...")
    plt.show()
    driver.stop()
    plt.close(fig)
    return driver


if __name__ == '__main__':
    animate_pendulum()
