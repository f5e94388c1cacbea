"""Session state machine, frame timing and end-to-end runs."""

import math

import pytest

from src.flappy.config import DEFAULT_TUNABLES
from src.flappy.events import GameListener
from src.flappy.pipes import Pipe
from src.flappy.sim import (
    Simulation, GameStatus, FrameClock, RenderState, tick_factor, step,
)
from conftest import FRAME_MS, FakeStore


class RecordingListener(GameListener):
    def __init__(self):
        self.calls = []

    def on_jump(self):
        self.calls.append(("jump",))

    def on_score(self, score):
        self.calls.append(("score", score))

    def on_game_over(self, score, best_score):
        self.calls.append(("game_over", score, best_score))


def playing_sim(**kw) -> Simulation:
    kw.setdefault("width", 448)
    kw.setdefault("height", 800)
    kw.setdefault("seed", 1)
    sim = Simulation(**kw)
    sim.jump()
    sim.jump()
    assert sim.status is GameStatus.PLAYING
    return sim


def fall_to_death(sim: Simulation, max_frames: int = 1000):
    for _ in range(max_frames):
        if sim.step(FRAME_MS) is GameStatus.GAME_OVER:
            return
    raise AssertionError("bird never died")


def pass_pipes(sim: Simulation, n: int):
    """Queue n pipes already behind the bird; the next frame scores them."""
    for i in range(n):
        sim.pipes.pipes.append(Pipe(id=10_000 + i, x=-100.0, top_height=100.0, gap=175.0))
    sim.step(FRAME_MS)


# -------------------- Timing --------------------

def test_tick_factor_normalises_and_caps():
    assert tick_factor(DEFAULT_TUNABLES.ideal_frame_ms) == (DEFAULT_TUNABLES.ideal_frame_ms, 1.0)
    capped, dt = tick_factor(2000.0)
    assert capped == 64.0
    assert dt == pytest.approx(64.0 / 16.666)
    assert tick_factor(-5.0) == (0.0, 0.0)
    assert tick_factor(float("nan")) == (0.0, 0.0)


def test_long_stall_steps_like_a_capped_frame():
    a = playing_sim(seed=9)
    b = playing_sim(seed=9)
    a.step(2000.0)
    b.step(64.0)
    assert (a.bird.y, a.bird.vy, a.bird.rotation) == (b.bird.y, b.bird.vy, b.bird.rotation)
    assert a.pipes.spawn_timer == b.pipes.spawn_timer
    assert a.run_ms == b.run_ms == 64.0


def test_frame_clock():
    clock = FrameClock()
    assert clock.elapsed(1000.0) == 0.0
    assert clock.elapsed(1016.0) == 16.0
    assert clock.elapsed(1010.0) == 0.0       # clocks going backwards never yield negative time
    clock.reset()
    assert clock.elapsed(5000.0) == 0.0


# -------------------- State machine --------------------

def test_welcome_then_ready_then_playing(cfg):
    sim = Simulation(width=448, height=800, seed=2)
    assert sim.status is GameStatus.WELCOME
    y0 = sim.bird.y
    sim.step(FRAME_MS)
    assert sim.bird.y == y0                    # nothing moves outside PLAYING

    assert sim.jump() is GameStatus.READY
    assert sim.bird.vy == 0.0
    assert sim.jump() is GameStatus.PLAYING
    assert sim.bird.vy == cfg.jump_strength


def test_start_resets_the_run(cfg):
    sim = playing_sim()
    for _ in range(30):
        sim.step(FRAME_MS)
    pass_pipes(sim, 2)
    fall_to_death(sim)
    assert sim.status is GameStatus.GAME_OVER

    sim.jump()                                  # GAME_OVER -> PLAYING
    assert sim.status is GameStatus.PLAYING
    assert sim.score == 0
    assert len(sim.pipes) == 0
    assert len(sim.particles) == cfg.particle_burst
    assert sim.bird.y == (800 - cfg.ground_height) / 2 - cfg.bird_size / 2
    assert sim.bird.vy == cfg.jump_strength
    assert sim.bird.rotation == cfg.start_rotation
    assert sim.pipes.spawn_timer == cfg.spawn_prime_ms
    assert sim.sequence.state.remaining == 0
    assert sim.run_ms == 0.0


def test_flap_while_playing(cfg):
    sim = playing_sim()
    for _ in range(20):
        sim.step(FRAME_MS)
    assert sim.bird.vy > 0
    before = len(sim.particles)
    sim.step(FRAME_MS, jump=True)
    assert sim.bird.vy == pytest.approx(cfg.jump_strength + cfg.gravity)
    assert len(sim.particles) == before + cfg.particle_burst
    assert sim.status is GameStatus.PLAYING


def test_pause_abandons_run_without_best_update():
    store = FakeStore(0)
    sim = playing_sim(store=store)
    pass_pipes(sim, 4)
    assert sim.score == 4
    assert sim.pause() is GameStatus.READY
    assert store.writes == [] and sim.best_score == 0
    y = sim.bird.y
    sim.step(FRAME_MS)
    assert sim.bird.y == y
    sim.jump()
    assert sim.status is GameStatus.PLAYING and sim.score == 0


def test_welcome_is_never_reentered():
    sim = playing_sim()
    fall_to_death(sim)
    seen = set()
    for _ in range(3):
        seen.add(sim.jump())
        fall_to_death(sim)
        seen.add(sim.status)
        seen.add(sim.jump())
        seen.add(sim.pause())
    assert GameStatus.WELCOME not in seen


def test_ground_death_snaps_and_shakes(cfg):
    sim = playing_sim()
    fall_to_death(sim)
    assert sim.bird.y + sim.bird.size == 800 - cfg.ground_height
    assert sim.shaking
    y = sim.bird.y
    sim.step(FRAME_MS)
    assert sim.bird.y == y                      # frozen after game over
    for _ in range(10):
        sim.step(64.0)
    assert not sim.shaking


def test_pipe_death(cfg):
    sim = playing_sim()
    # a wall with its gap far below the bird, right on top of it
    sim.pipes.pipes.append(Pipe(id=1, x=sim.bird.x, top_height=600.0, gap=10.0))
    assert sim.step(FRAME_MS) is GameStatus.GAME_OVER
    assert sim.shaking


# -------------------- Collaborators --------------------

def test_listener_notifications():
    listener = RecordingListener()
    sim = playing_sim(listener=listener)
    sim.step(FRAME_MS, jump=True)
    pass_pipes(sim, 1)
    fall_to_death(sim)
    assert listener.calls == [("jump",), ("jump",), ("score", 1), ("game_over", 1, 1)]


def test_pipes_resolve_in_queue_order_within_a_frame():
    # a pipe already behind the bird scores before a later pipe kills it
    sim = playing_sim()
    sim.pipes.pipes.append(Pipe(id=1, x=-100.0, top_height=100.0, gap=175.0))
    sim.pipes.pipes.append(Pipe(id=2, x=sim.bird.x, top_height=600.0, gap=10.0))
    assert sim.step(FRAME_MS) is GameStatus.GAME_OVER
    assert sim.score == 1

    # a deadly pipe first in the queue ends the frame before anything scores
    sim = playing_sim()
    sim.pipes.pipes.append(Pipe(id=1, x=sim.bird.x, top_height=600.0, gap=10.0))
    sim.pipes.pipes.append(Pipe(id=2, x=-100.0, top_height=100.0, gap=175.0))
    assert sim.step(FRAME_MS) is GameStatus.GAME_OVER
    assert sim.score == 0
    assert not sim.pipes.pipes[1].passed


def test_crashing_listener_does_not_stop_the_frame():
    class Boom(GameListener):
        def on_score(self, score):
            raise RuntimeError("speaker unplugged")

    sim = playing_sim(listener=Boom())
    pass_pipes(sim, 3)
    assert sim.score == 3
    assert sim.status is GameStatus.PLAYING


# -------------------- Playfield --------------------

def test_width_is_capped_to_game_column(cfg):
    sim = Simulation(width=1920, height=1080)
    assert sim.width == cfg.max_game_width
    sim.resize(300, 700)
    assert sim.width == 300


def test_resize_recentres_bird_only_before_play(cfg):
    sim = Simulation(width=448, height=800)
    sim.resize(448, 1000)
    assert sim.bird.y == (1000 - cfg.ground_height) / 2 - cfg.bird_size / 2
    sim.jump()
    sim.jump()
    sim.step(FRAME_MS)
    y = sim.bird.y
    sim.resize(448, 600)
    assert sim.bird.y == y


@pytest.mark.parametrize("w, h", [(0, 800), (448, 0), (-10, -10), (448, float("nan"))])
def test_degenerate_playfield_pauses_updates(w, h):
    sim = Simulation(width=w, height=h, seed=3)
    sim.jump()
    sim.jump()
    y, vy = sim.bird.y, sim.bird.vy
    for _ in range(200):
        assert sim.step(FRAME_MS) is GameStatus.PLAYING
    assert len(sim.pipes) == 0
    assert (sim.bird.vy == vy) and (sim.bird.y == y or (math.isnan(y) and math.isnan(sim.bird.y)))

    sim.resize(448, 800)
    sim.step(FRAME_MS)
    assert sim.run_ms == FRAME_MS


# -------------------- Snapshot --------------------

def test_step_returns_independent_snapshot():
    sim = playing_sim()
    sim.pipes.pipes.append(Pipe(id=1, x=300.0, top_height=100.0, gap=175.0))
    rs = step(sim, FRAME_MS)
    assert isinstance(rs, RenderState)
    assert rs.status is GameStatus.PLAYING
    assert rs.pipes[0].x == 300.0 - DEFAULT_TUNABLES.scroll_speed
    sim.step(FRAME_MS)
    assert rs.pipes[0].x == 300.0 - DEFAULT_TUNABLES.scroll_speed
    assert rs.bird_y != sim.bird.y


# -------------------- End to end --------------------

def test_first_pipe_arrives_after_one_interval_and_scrolls():
    cfg = DEFAULT_TUNABLES.with_overrides(spawn_prime_ms=0.0)
    sim = Simulation(cfg, width=448, height=1000, seed=11, store=FakeStore(0))
    sim.jump()
    sim.jump()
    assert (sim.score, sim.best_score) == (0, 0)

    spawn_x = None
    for frame in range(1, 201):
        sim.step(FRAME_MS, jump=(frame % 20 == 0))
        assert sim.status is GameStatus.PLAYING
        if frame == 90:                          # t ~ 1499.9 ms
            assert len(sim.pipes) == 0
        if frame == 91:                          # t ~ 1516.6 ms, first pipe in
            assert len(sim.pipes) == 1
            spawn_x = sim.pipes.pipes[0].x
            assert spawn_x == pytest.approx(448 - cfg.scroll_speed)
        if frame == 120:                         # t ~ 2000 ms
            ticks_since_spawn = 120 - 90
            assert sim.pipes.pipes[0].x == pytest.approx(448 - cfg.scroll_speed * ticks_since_spawn)
    assert spawn_x is not None
    assert sim.run_ms == pytest.approx(200 * FRAME_MS)


def test_best_score_is_only_written_on_improvement():
    store = FakeStore(5)
    sim = playing_sim(store=store)
    assert sim.best_score == 5

    pass_pipes(sim, 3)
    for _ in range(5):
        sim.step(FRAME_MS)
    assert sim.score == 3                        # passed pipes never score twice
    fall_to_death(sim)
    assert sim.best_score == 5
    assert store.writes == []

    sim.jump()
    pass_pipes(sim, 7)
    fall_to_death(sim)
    assert sim.score == 7
    assert sim.best_score == 7
    assert store.writes == [7]
