"""An SFZ sound: its regions, samples and the problems met while loading it."""

from __future__ import annotations

from typing import Callable, Optional

from .region import SFZRegion, Trigger
from .sample import SFZSample
from .sfz_reader import SFZReader

ProgressFn = Callable[[float], None]


def sibling_path(from_path: str, filename: str) -> str:
    """Resolve ``filename`` against the directory of ``from_path``.

    Absolute file names are returned unchanged.
    """
    if filename.startswith("/"):
        return filename
    return from_path[: from_path.rfind("/") + 1] + filename


def fix_slashes(text: str) -> str:
    """Turn backslashes into forward slashes."""
    return text.replace("\\", "/")


class SFZSound:
    """A sound read from an SFZ file."""

    def __init__(self, path):
        self.path = str(path)
        self.regions: list[SFZRegion] = []
        self.samples: dict[str, SFZSample] = {}
        self.errors: list[str] = []
        self.unsupported_opcodes: set[str] = set()
        # An SFZ file holds a single, unnamed subsound.
        self._subsound_names: list[str] = [""]
        self._selected_subsound = 0

    def add_region(self, region: SFZRegion) -> None:
        self.regions.append(region)

    def add_sample(self, sample_path: str, default_path: str = "") -> SFZSample:
        """Return the sample for a path relative to the sound, creating it once."""
        sample_path = fix_slashes(sample_path)
        default_path = fix_slashes(default_path)
        if not default_path:
            sample_path = sibling_path(self.path, sample_path)
        else:
            default_dir = sibling_path(self.path, default_path)
            sample_path = f"{default_dir}/{sample_path}"
        sample = self.samples.get(sample_path)
        if sample is None:
            sample = SFZSample(sample_path)
            self.samples[sample_path] = sample
        return sample

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def add_unsupported_opcode(self, opcode: str) -> None:
        self.unsupported_opcodes.add(opcode)

    def load_regions(self) -> None:
        """Read the SFZ file's regions."""
        SFZReader(self).read_file(self.path)

    def load_samples(self, progress_fn: Optional[ProgressFn] = None) -> None:
        """Load every sample, reporting progress along the way."""
        if progress_fn:
            progress_fn(0.0)

        num_samples = float(len(self.samples))
        num_loaded = 1.0
        for _, sample in sorted(self.samples.items()):
            if not sample.load():
                self.add_error(f'Couldn\'t load sample "{sample.short_name()}"')
            num_loaded += 1.0
            if progress_fn:
                progress_fn(num_loaded / num_samples)

        if progress_fn:
            progress_fn(1.0)

    def get_region_for(
        self, note, velocity, rand_val, trigger=Trigger.ATTACK
    ) -> Optional[SFZRegion]:
        """The first region that plays for this note, if any."""
        for region in self.regions:
            if region.matches(note, velocity, trigger, rand_val):
                return region
        return None

    def has_region_for(self, note, trigger=Trigger.ATTACK) -> bool:
        return any(region.ever_matches(note, trigger) for region in self.regions)

    def group_for(self, note, trigger=Trigger.ATTACK) -> int:
        """The group of the first region that could play this note, or 0."""
        for region in self.regions:
            if region.ever_matches(note, trigger):
                return region.group
        return 0

    def num_regions(self) -> int:
        return len(self.regions)

    def region_at(self, index: int) -> SFZRegion:
        return self.regions[index]

    def get_errors_string(self) -> str:
        """All errors, one per line, followed by the unsupported opcodes."""
        result = "".join(f"{error}\n" for error in self.errors)
        if self.unsupported_opcodes:
            result += "\nUnsupported opcodes: "
            result += ", ".join(sorted(self.unsupported_opcodes))
            result += "\n"
        return result

    def num_subsounds(self) -> int:
        return len(self._subsound_names)

    def subsound_name(self, which_subsound: int) -> str:
        """The subsound's name; the single SFZ subsound has an empty one."""
        if 0 <= which_subsound < len(self._subsound_names):
            return self._subsound_names[which_subsound]
        return ""

    def use_subsound(self, which_subsound: int) -> None:
        """Select a subsound; indexes out of range are ignored."""
        if 0 <= which_subsound < len(self._subsound_names):
            self._selected_subsound = which_subsound

    def selected_subsound(self) -> int:
        return self._selected_subsound

    def dump(self) -> None:
        """Print errors, unsupported opcodes, regions and samples."""
        if self.errors:
            print("Errors:")
            for error in self.errors:
                print(f"- {error}")
            print()

        if self.unsupported_opcodes:
            print("Unused opcodes:")
            for opcode in sorted(self.unsupported_opcodes):
                print(f"  {opcode}")
            print()

        print("Regions:")
        for region in self.regions:
            region.dump()
        print()

        print("Samples:")
        for _, sample in sorted(self.samples.items()):
            sample.dump()