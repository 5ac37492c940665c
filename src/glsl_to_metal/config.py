from dataclasses import dataclass

DEFAULT_FUNCTION_NAME = "customPostProcess"


@dataclass
class TranspilerConfig:
    # --- Output ---
    function_name: str = DEFAULT_FUNCTION_NAME  # Fragment entry symbol requested from the compiled library
    flip_y: bool = False  # Map fragCoord to a bottom-left origin like Shadertoy

    # --- Transformation ---
    transitive_uniforms: bool = (
        False  # Thread ambient values through call chains longer than one hop
    )
    exact_mod: bool = (
        False  # Emit an exact glsl_mod helper instead of mapping mod() to fmod()
    )

    # --- Logging ---
    log_level: str = "INFO"  # Minimum log level to output
    log_file: str | None = None  # Redirect logs to a file instead of stderr
