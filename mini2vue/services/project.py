"""
Project Converter - walks a mini-program source tree and writes the Vue project.

Per directory, markup files are converted first so the helper modules they
declare can be handed to the script with the same base name. Helper files
are copied next, then scripts are converted and every other file copied.
"""
import asyncio
import logging
import shutil
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel

from mini2vue.config import settings
from mini2vue.services.transpiler import convert_markup, convert_script, ModuleBinding

logger = logging.getLogger(__name__)

DECLARATION_CONTENT = """/**
 * Global declarations
 * Type stubs for the globals a mini-program script relies on
 */

// Platform API object
declare const my: any;

// Page declaration function
declare function Page(options: any): any;

// Component declaration function
declare function Component(options: any): any;
"""


class ConfigurationError(Exception):
    """Raised when the input or output location cannot be used."""
    pass


class ConversionReport(BaseModel):
    """Outcome of a project conversion"""
    converted: List[Path] = []    # Generated files
    copied: List[Path] = []       # Files copied verbatim
    failed: List[Path] = []       # Source files whose pipeline failed

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        return f"{len(self.converted)} converted, {len(self.copied)} copied, {len(self.failed)} failed"


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _write_text(path: Path, content: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class ProjectConverter:
    """
    Converts a mini-program project directory into a Vue project directory.

    Example:
        report = await ProjectConverter().convert(Path("src"), Path("dist"))
    """

    def __init__(self, copy_on_failure: Optional[bool] = None):
        self.copy_on_failure = settings.COPY_ON_FAILURE if copy_on_failure is None else copy_on_failure
        self.report = ConversionReport()

    async def convert(self, input_dir: Path, output_dir: Path) -> ConversionReport:
        """
        Convert a whole project.

        Args:
            input_dir: Mini-program source root
            output_dir: Destination root (created if missing)

        Returns:
            ConversionReport

        Raises:
            ConfigurationError: If the paths cannot be used
        """
        input_dir = Path(input_dir).resolve()
        output_dir = Path(output_dir).resolve()
        self._validate(input_dir, output_dir)

        self.report = ConversionReport()
        logger.info(f"Converting {input_dir} -> {output_dir}")

        await self.convert_directory(input_dir, output_dir)

        declaration_path = output_dir / settings.DECLARATION_FILE_NAME
        await asyncio.to_thread(_write_text, declaration_path, DECLARATION_CONTENT)
        logger.info(f"Wrote {declaration_path}")

        logger.info(f"Conversion finished: {self.report.summary()}")
        return self.report

    @staticmethod
    def _validate(input_dir: Path, output_dir: Path):
        if not input_dir.exists():
            raise ConfigurationError(f"Input path does not exist: {input_dir}")
        if not input_dir.is_dir():
            raise ConfigurationError(f"Input path is not a directory: {input_dir}")
        if output_dir == input_dir or input_dir in output_dir.parents:
            raise ConfigurationError(f"Output path must not be inside the input path: {output_dir}")

    async def convert_directory(self, input_dir: Path, output_dir: Path):
        """
        Convert one directory, recursing into subdirectories.

        Args:
            input_dir: Source directory
            output_dir: Destination directory
        """
        await asyncio.to_thread(output_dir.mkdir, parents=True, exist_ok=True)
        entries = sorted(await asyncio.to_thread(lambda: list(input_dir.iterdir())))

        # Helper modules declared by each markup file, keyed by base name
        bindings: Dict[str, List[ModuleBinding]] = {}

        for entry in entries:
            if entry.is_file() and entry.name.endswith(settings.MARKUP_EXTENSION):
                base_name = entry.name[:-len(settings.MARKUP_EXTENSION)]
                module_bindings = await self.convert_markup_file(entry, output_dir, base_name)
                if module_bindings:
                    bindings[base_name] = module_bindings

        for entry in entries:
            if entry.is_file() and entry.name.endswith(settings.HELPER_EXTENSION):
                await self.copy_file(entry, output_dir / entry.name)

        for entry in entries:
            target = output_dir / entry.name
            if entry.is_dir():
                await self.convert_directory(entry, target)
            elif not entry.is_file():
                continue
            elif settings.is_script(entry.name):
                base_name = settings.strip_script_extension(entry.name)
                await self.convert_script_file(entry, target, bindings.get(base_name, []))
            elif not entry.name.endswith((settings.MARKUP_EXTENSION, settings.HELPER_EXTENSION)):
                await self.copy_file(entry, target)

        logger.debug(f"Directory done: {input_dir}")

    async def convert_markup_file(self, path: Path, output_dir: Path, base_name: str) -> List[ModuleBinding]:
        """
        Convert a markup file into a .vue file.

        Writes a placeholder style file when the project has none for it.

        Returns:
            Helper modules declared by the markup, empty on failure
        """
        target = output_dir / f"{base_name}{settings.TEMPLATE_EXTENSION}"
        try:
            text = await asyncio.to_thread(_read_text, path)
            result = convert_markup(text, base_name)
            await asyncio.to_thread(_write_text, target, result['content'])
        except Exception as e:
            logger.error(f"Markup conversion failed: {path}: {e}", exc_info=True)
            await self._handle_failure(path, output_dir / path.name)
            return []

        style_name = f"{base_name}{settings.STYLE_EXTENSION}"
        if not (path.parent / style_name).exists() and not (output_dir / style_name).exists():
            await asyncio.to_thread(_write_text, output_dir / style_name, settings.STYLE_PLACEHOLDER + "\n")
            logger.debug(f"Created style placeholder {output_dir / style_name}")

        logger.info(f"Converted: {path} -> {target}")
        self.report.converted.append(target)
        return result['moduleBindings']

    async def convert_script_file(self, path: Path, target: Path, module_bindings: List[ModuleBinding]):
        """
        Convert a script file, or copy it when it is neither a page, a
        component nor a utility module.
        """
        try:
            text = await asyncio.to_thread(_read_text, path)
            result = convert_script(text, module_bindings)
            if result is None:
                await self.copy_file(path, target)
                return
            await asyncio.to_thread(_write_text, target, result['content'])
        except Exception as e:
            logger.error(f"Script conversion failed: {path}: {e}", exc_info=True)
            await self._handle_failure(path, target)
            return

        logger.info(f"Converted {result['kind']}: {path} -> {target}")
        self.report.converted.append(target)

    async def copy_file(self, path: Path, target: Path):
        """Copy a file verbatim."""
        try:
            await asyncio.to_thread(shutil.copy2, path, target)
        except OSError as e:
            logger.error(f"Copy failed: {path}: {e}", exc_info=True)
            self.report.failed.append(path)
            return
        logger.debug(f"Copied: {path} -> {target}")
        self.report.copied.append(target)

    async def _handle_failure(self, path: Path, target: Path):
        self.report.failed.append(path)
        if self.copy_on_failure:
            await self.copy_file(path, target)
