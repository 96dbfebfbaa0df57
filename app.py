"""
App shell: display and main loop. Each frame advances the simulation steps_per_frame times
through SimulationState.step and draws the returned U buffer. Keys: p pause, r reset,
s save config + fields, d delete the saved run, Esc quit. Any simulation error is reported
and ends the process.
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np
import pygame

import config
from grayscott import SimulationError, SimulationState
from ui.grid_view import draw_field

TITLE = "Gray-Scott"
WINDOW_SIZE = 768
BACKGROUND = (0, 0, 0)
FPS = 60

logger = logging.getLogger("grayscott.app")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Gray-Scott reaction-diffusion viewer.")
    p.add_argument("--config", type=str, default=None, help="Config JSON to load (default: last saved).")
    p.add_argument("--width", type=int, default=None, help="Grid width, a multiple of 16.")
    p.add_argument("--height", type=int, default=None, help="Grid height, a multiple of 16.")
    p.add_argument("--seed", type=int, default=None, help="Perturbation seed (-1 = random).")
    p.add_argument("--backend", choices=("numpy", "tiled"), default=None)
    p.add_argument("--steps-per-frame", type=int, default=None)
    p.add_argument("--verbose", action="store_true", help="Log debug messages.")
    return p.parse_args(argv)


def setup_logging(verbose: bool = False) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s (%(levelname)s), %(asctime)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def apply_args(cfg: dict, args: argparse.Namespace) -> dict:
    """Command-line values override the loaded config."""
    cfg = {**cfg, "world": dict(cfg["world"])}
    if args.width is not None:
        cfg["world"]["width"] = args.width
    if args.height is not None:
        cfg["world"]["height"] = args.height
    if args.seed is not None:
        cfg["seed"] = args.seed
    if args.backend is not None:
        cfg["backend"] = args.backend
    if args.steps_per_frame is not None:
        cfg["steps_per_frame"] = args.steps_per_frame
    return cfg


def make_state(cfg: dict) -> SimulationState:
    seed = cfg.get("seed", -1)
    if cfg.get("lock_seed") and seed == -1 and "actual_seed_used" in cfg:
        seed = cfg["actual_seed_used"]
    return SimulationState(seed=seed, backend=cfg.get("backend", "numpy"), **config.param_overrides(cfg))


def restart(state: SimulationState, cfg: dict) -> None:
    """New initial condition. With lock_seed the seed in use is kept, even if it was drawn at random."""
    if cfg.get("lock_seed") and state.seed_used is not None:
        state.seed = state.seed_used
    state.reset()


def run_id(args: argparse.Namespace) -> tuple[int, str] | None:
    """(seed, name) of the run being continued: the --config file's, else the last saved one."""
    if args.config is None:
        return config.get_last_config()
    return config.parse_config_id(Path(args.config).stem)


def run_name(args: argparse.Namespace) -> str:
    current = run_id(args)
    if current is not None:
        return current[1]
    return Path(args.config).stem if args.config else "unnamed"


def restore_saved(state: SimulationState, args: argparse.Namespace, width: int, height: int) -> bool:
    """Continue from the run's saved fields if they fit the grid."""
    current = run_id(args)
    saved = config.load_state(*current) if current else None
    if saved is None:
        return False
    if saved["u"].shape != (height, width):
        logger.warning(
            "Saved fields of %s are %dx%d, grid is %dx%d; starting fresh",
            config.config_id(*current), saved["u"].shape[1], saved["u"].shape[0], width, height,
        )
        return False
    state.restore(saved["u"], saved["v"], saved["step_count"], seed_used=current[0])
    return True


def save_run(state: SimulationState, cfg: dict, name: str, width: int, height: int) -> Path:
    existed = config.config_exists(state.seed_used, name)
    path = config.save_config(
        {**cfg, "world": {"width": width, "height": height}},
        state.seed_used,
        name,
        step_count=state.step_count,
        state=state.snapshot(),
    )
    logger.info("%s %s at step %d", "Overwrote" if existed else "Saved", path, state.step_count)
    return path


def delete_run(state: SimulationState, name: str) -> bool:
    if state.seed_used is None or not config.config_exists(state.seed_used, name):
        return False
    config.delete_config(state.seed_used, name)
    logger.info("Deleted %s", config.config_id(state.seed_used, name))
    return True


def run(args: argparse.Namespace) -> int:
    config.refresh_index()
    saved_runs = config.list_configs()
    if saved_runs:
        logger.info("Saved runs: %s", ", ".join(config.config_id(seed, name) for seed, name in saved_runs))
    cfg = apply_args(config.load_config(args.config), args)
    width, height = cfg["world"]["width"], cfg["world"]["height"]
    steps_per_frame = max(1, int(cfg.get("steps_per_frame", 4)))
    palette = cfg.get("palette", "ocean")
    name = run_name(args)

    state = make_state(cfg)
    restore_saved(state, args, width, height)
    frame = np.empty(width * height, dtype=np.float64)

    pygame.init()
    screen = pygame.display.set_mode((WINDOW_SIZE, WINDOW_SIZE))
    pygame.display.set_caption(TITLE)
    clock = pygame.time.Clock()
    view_rect = pygame.Rect(0, 0, WINDOW_SIZE, WINDOW_SIZE)

    paused = False
    has_frame = False
    try:
        while True:
            clock.tick(FPS)
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    return 0
                if event.type != pygame.KEYDOWN:
                    continue
                if event.key == pygame.K_ESCAPE:
                    return 0
                if event.key == pygame.K_p:
                    paused = not paused
                elif event.key == pygame.K_r:
                    restart(state, cfg)
                    has_frame = False
                elif event.key == pygame.K_s and state.seed_used is not None:
                    save_run(state, cfg, name, width, height)
                elif event.key == pygame.K_d:
                    delete_run(state, name)

            if not paused or not has_frame:
                for _ in range(steps_per_frame):
                    state.step(width, height, frame)
                has_frame = True
                pygame.display.set_caption(f"{TITLE} - step {state.step_count} (seed {state.seed_used})")

            screen.fill(BACKGROUND)
            draw_field(screen, view_rect, frame, width, height, palette)
            pygame.display.flip()
    finally:
        state.close()
        pygame.quit()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)
    try:
        return run(args)
    except SimulationError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
