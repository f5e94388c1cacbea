# src/flappy/game.py
import sys, argparse, logging, random
import pygame
from pygame import K_SPACE, K_ESCAPE, K_UP, K_p, K_m
from .config import (
    WIDTH, HEIGHT, FPS, SEED_DEFAULT, DEFAULT_TUNABLES,
    COLOR_SKY, COLOR_GROUND, COLOR_GRASS, COLOR_PIPE, COLOR_PIPE_EDGE,
    COLOR_BIRD, COLOR_FG, COLOR_DANGER,
)
from .audio import AudioListener
from .score import BestScoreStore, DEFAULT_BEST_FILE
from .sim import Simulation, GameStatus, RenderState, FrameClock

logger = logging.getLogger(__name__)

SHAKE_PX = 6


def draw_frame(screen: pygame.Surface, rs: RenderState, font: pygame.font.Font,
               rng: random.Random = random, ground_height: float = DEFAULT_TUNABLES.ground_height,
               pipe_width: float = DEFAULT_TUNABLES.pipe_width):
    """Draw one snapshot. Purely visual; never touches the simulation."""
    frame = pygame.Surface((int(rs.width), int(rs.height)))
    frame.fill(COLOR_SKY)
    floor_y = rs.height - ground_height

    for pipe in rs.pipes:
        for r in pipe.rects(pipe_width, floor_y):
            pygame.draw.rect(frame, COLOR_PIPE, r)
            pygame.draw.rect(frame, COLOR_PIPE_EDGE, r, width=3)

    for p in rs.particles:
        alpha = int(150 * max(0.0, min(1.0, p.life)))
        size = max(1, int(p.size))
        puff = pygame.Surface((size, size), pygame.SRCALPHA)
        pygame.draw.circle(puff, (255, 255, 255, alpha), (size // 2, size // 2), size // 2)
        frame.blit(puff, (int(p.x), int(p.y)))

    pygame.draw.rect(frame, COLOR_GROUND, pygame.Rect(0, int(floor_y), int(rs.width), int(ground_height)))
    pygame.draw.rect(frame, COLOR_GRASS, pygame.Rect(0, int(floor_y), int(rs.width), 12))

    size = int(rs.bird_size)
    body = pygame.Surface((size, size), pygame.SRCALPHA)
    pygame.draw.ellipse(body, COLOR_BIRD, body.get_rect().inflate(-4, -10))
    pygame.draw.circle(body, (20, 20, 20), (size * 3 // 4, size // 3), 3)
    # pygame rotates counter-clockwise; positive rotation means nose down
    body = pygame.transform.rotate(body, -rs.rotation)
    center = (int(rs.bird_x + size / 2), int(rs.bird_y + size / 2))
    frame.blit(body, body.get_rect(center=center))

    if rs.status is not GameStatus.WELCOME:
        txt = font.render(str(rs.score), True, COLOR_FG)
        frame.blit(txt, (int(rs.width) // 2 - txt.get_width() // 2, 60))
        best = font.render(f"BEST {rs.best_score}", True, COLOR_FG)
        frame.blit(best, (12, 12))

    messages = {
        GameStatus.WELCOME: "FLAPPY - press SPACE",
        GameStatus.READY: "TAP TO FLY",
        GameStatus.GAME_OVER: f"GAME OVER  score {rs.score}  best {rs.best_score}",
    }
    msg = messages.get(rs.status)
    if msg:
        color = COLOR_DANGER if rs.status is GameStatus.GAME_OVER else COLOR_FG
        t = font.render(msg, True, color)
        frame.blit(t, (int(rs.width) // 2 - t.get_width() // 2, int(rs.height * 0.45)))

    offset = (0, 0)
    if rs.shaking:
        offset = (rng.randint(-SHAKE_PX, SHAKE_PX), rng.randint(-SHAKE_PX, SHAKE_PX))
    screen.fill((0, 0, 0))
    screen.blit(frame, ((screen.get_width() - frame.get_width()) // 2 + offset[0], offset[1]))


class GameLoop:
    """
    Window + input + render around one Simulation.
    `stop()` cancels the loop before the next frame is simulated.
    """
    def __init__(self, sim: Simulation, audio: AudioListener, width: int, height: int):
        self.sim = sim
        self.audio = audio
        self.width = width
        self.height = height
        self.running = False
        self.screen = None
        self.font = None
        self.clock = FrameClock()

    def stop(self):
        self.running = False

    def _handle_events(self) -> bool:
        """Returns True if a jump command arrived this frame."""
        jumped = False
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.stop()
            elif event.type == pygame.VIDEORESIZE:
                self.width, self.height = event.w, event.h
                self.sim.resize(event.w, event.h)
            elif event.type == pygame.KEYDOWN:
                if event.key == K_ESCAPE:
                    self.stop()
                elif event.key in (K_SPACE, K_UP):
                    jumped = True
                elif event.key == K_p:
                    self.sim.pause()
                elif event.key == K_m:
                    self.audio.set_muted(not self.audio.muted)
            elif event.type in (pygame.MOUSEBUTTONDOWN, pygame.FINGERDOWN):
                jumped = True
        return jumped

    def run(self):
        pygame.init()
        pygame.display.set_caption("Flappy")
        self.screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)
        self.font = pygame.font.SysFont("jetbrainsmono", 22, bold=True)
        ticker = pygame.time.Clock()
        self.running = True
        try:
            while self.running:
                ticker.tick(FPS)
                jumped = self._handle_events()
                if not self.running:
                    break
                elapsed = self.clock.elapsed(pygame.time.get_ticks())
                self.sim.step(elapsed, jump=jumped)
                if not self.sim.playfield_ok():
                    continue   # minimised / zero-sized window
                draw_frame(self.screen, self.sim.snapshot(), self.font,
                           ground_height=self.sim.cfg.ground_height,
                           pipe_width=self.sim.cfg.pipe_width)
                pygame.display.flip()
        finally:
            self.audio.close()
            pygame.quit()


def parse_args(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument("--seed", type=int, default=None,
                   help="Pipe layout seed. Omit for SEED_DEFAULT, use -1 for random each launch.")
    p.add_argument("--width", type=int, default=WIDTH)
    p.add_argument("--height", type=int, default=HEIGHT)
    p.add_argument("--mute", action="store_true", help="Start with sound effects muted")
    p.add_argument("--best-file", type=str, default=str(DEFAULT_BEST_FILE),
                   help="Where the best score is persisted")
    p.add_argument("--log-level", type=str, default="INFO")
    return p.parse_args(argv)


def run(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.seed is None:
        seed = SEED_DEFAULT
    elif args.seed == -1:
        seed = None
    else:
        seed = args.seed

    audio = AudioListener(muted=args.mute)
    audio.init()
    sim = Simulation(width=args.width, height=args.height, seed=seed,
                     store=BestScoreStore(args.best_file), listener=audio)
    GameLoop(sim, audio, args.width, args.height).run()
    sys.exit(0)


if __name__ == "__main__":
    run()
