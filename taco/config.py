import os
from dataclasses import dataclass

try:
    import tomllib  # Python 3.11+
except Exception:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from taco.pipeline.fields import DEFAULT_FORM_NAME, DEFAULT_SUBTITLE


@dataclass
class TacoConfig:
    default_form_name: str = DEFAULT_FORM_NAME
    default_subtitle: str = DEFAULT_SUBTITLE
    output_dir: str = "outputs"
    log_level: str = "INFO"


def load_config(path: str = "taco.toml") -> TacoConfig:
    data = {}
    if os.path.exists(path):
        with open(path, "rb") as f:
            data = tomllib.load(f)

    blueprint = data.get("blueprint", {})
    defaults = data.get("defaults", {})

    # TACO_OUTPUT_DIR wins over the file so one-off runs need no config edits
    output_dir = os.environ.get("TACO_OUTPUT_DIR") or defaults.get("output_dir", "outputs")
    log_level = os.environ.get("LOG_LEVEL") or defaults.get("log_level", "INFO")

    return TacoConfig(
        default_form_name=blueprint.get("form_name", DEFAULT_FORM_NAME),
        default_subtitle=blueprint.get("subtitle", DEFAULT_SUBTITLE),
        output_dir=output_dir,
        log_level=str(log_level).upper(),
    )
