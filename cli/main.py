"""
Command Line Interface using Fire - run and inspect bake-offs
"""
import fire
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from bakeoff_errors import BakeOffError
from bakeoff_types import EventKind
from config import Settings, load_settings
from kitchen.engine import KitchenEvent
from recipes.catalog import RecipeCatalog
from scenarios.executor import KitchenSupervisor

logger = logging.getLogger(__name__)

RESET = "\x1b[0m"
BAKER_COLORS = [
    "\x1b[31m",  # red
    "\x1b[32m",  # green
    "\x1b[33m",  # yellow
    "\x1b[34m",  # blue
    "\x1b[35m",  # magenta
    "\x1b[36m",  # cyan
]


class ConsoleReporter:
    """Prints kitchen events, one colour per baker"""

    MESSAGES = {
        EventKind.ATTEMPT_STARTED: "is attempting to make {recipe} (attempt {attempt})",
        EventKind.AREA_ENTERED: "entered the {area}",
        EventKind.INGREDIENT_GATHERED: "gathered {ingredient} for {recipe}",
        EventKind.AREA_LEFT: "left the {area}",
        EventKind.MIXING_STARTED: "is mixing ingredients for {recipe}",
        EventKind.BAKING_STARTED: "is baking {recipe}",
        EventKind.RECIPE_COMPLETED: "completed {recipe}",
        EventKind.PREEMPTION_FIRED: "INTERRUPTED during {phase}! Dropped everything for {recipe}",
        EventKind.ATTEMPT_ABORTED: "starts {recipe} over",
        EventKind.WORKER_FINISHED: "has finished all recipes",
    }

    def __init__(self, color: bool = True, stream=None, verbose: bool = True):
        self.color = color
        self.stream = stream or sys.stdout
        self.verbose = verbose

    def __call__(self, event: KitchenEvent):
        if not self.verbose and event.kind in (
            EventKind.AREA_ENTERED, EventKind.AREA_LEFT, EventKind.INGREDIENT_GATHERED
        ):
            return
        text = self.MESSAGES[event.kind].format(recipe=event.recipe, **event.detail)
        line = f"Baker {event.worker_id} {text}"
        if self.color:
            line = f"{BAKER_COLORS[event.worker_id % len(BAKER_COLORS)]}{line}{RESET}"
        print(line, file=self.stream, flush=True)


class BakeOffCLI:
    """Command-line interface for the bake-off kitchen"""

    def __init__(self, config_path: str = "configs/config.yaml"):
        """Initialize CLI with configuration"""
        self.config_path = Path(config_path)
        self.settings: Settings = load_settings(self.config_path)

        logging.basicConfig(
            level=getattr(logging, self.settings.effective_log_level, logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    def run(
        self,
        bakers: int = 0,
        seed: Optional[int] = None,
        recipes: str = "",
        color: bool = True,
        quiet: bool = False,
        export: str = ""
    ) -> None:
        """Run a bake-off

        Args:
            bakers: Number of bakers; asks when not given
            seed: Seed for the preemption draw
            recipes: Comma-separated recipe names, in order (default: all)
            color: Colour each baker's output
            quiet: Only print attempts, mixing, baking and completions
            export: Write the event log to this .json or .csv file
        """
        if seed is not None:
            self.settings = self.settings.model_copy(update={'seed': seed})

        worker_count = bakers or self.settings.default_bakers or self._prompt_bakers()

        if isinstance(recipes, (list, tuple)):
            recipe_names = [str(r).strip() for r in recipes]
        else:
            recipe_names = [r.strip() for r in recipes.split(",") if r.strip()] if recipes else None

        supervisor = KitchenSupervisor(self.settings)
        supervisor.register_event_handler(ConsoleReporter(color=color, verbose=not quiet))
        result = supervisor.run(worker_count, recipe_names=recipe_names)

        print("\nAll bakers have finished their recipes!")
        print(f"Recipes completed: {result.recipes_completed}")
        if result.preemption_fired:
            print(f"Baker {result.preemption_target} was interrupted once")
        print(f"Duration: {result.duration_seconds:.2f}s")

        if export:
            fmt = "csv" if export.endswith(".csv") else "json"
            path = supervisor.metrics.export(export, format=fmt)
            print(f"Events exported to {path}")

    def recipes(self) -> None:
        """List the recipe catalog"""
        catalog = RecipeCatalog.load(self.settings.recipes_file)
        print(f"\n{'Recipe':<18} {'Pantry':<45} {'Refrigerator'}")
        print("-" * 85)
        for recipe in catalog:
            info = recipe.to_dict()
            print(f"{recipe.name:<18} {', '.join(info['pantry']):<45} {', '.join(info['refrigerator'])}")

        print("\nRecipes needing each ingredient:")
        for ingredient, count in catalog.ingredient_demand().items():
            print(f"  {ingredient:<12} {count}")

    def settings_info(self) -> None:
        """Show effective settings"""
        print(json.dumps(self.settings.model_dump(mode="json"), indent=2))

    def version(self) -> None:
        """Show version information"""
        print("Bake-Off Kitchen Simulation")
        print("Version: 1.0.0")

    def _prompt_bakers(self) -> int:
        answer = input(f"Enter number of bakers (max {self.settings.max_bakers}): ")
        try:
            return int(answer)
        except ValueError:
            return 0


def main():
    """Main CLI entry point"""
    if len(sys.argv) > 1 and sys.argv[1].endswith('.yaml'):
        config_path = sys.argv[1]
        sys.argv = [sys.argv[0]] + sys.argv[2:]  # Remove config from args
    else:
        config_path = "configs/config.yaml"

    try:
        cli = BakeOffCLI(config_path)
        fire.Fire(cli)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except BakeOffError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
