"""
Ambient values exposed to Shadertoy/Ghostty shaders by the Metal wrapper.

The fragment wrapper makes these identifiers available to the entry
function body; helper functions that use them get them threaded in as
explicit parameters by the UniformUsagePropagator.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class AmbientValue:
    """
    An implicit value available to the entry point.

    Attributes:
        name: Identifier used by shader code (e.g. iTime)
        type_name: Metal type of the value
        uniform_field: True if the value lives in the uniform struct,
            False for resources bound directly to the fragment function
    """
    name: str
    type_name: str
    uniform_field: bool = True

    @property
    def parameter(self) -> str:
        """Declaration used when the value becomes a function parameter."""
        return f'{self.type_name} {self.name}'


RESOLUTION = AmbientValue('iResolution', 'float2')
TIME = AmbientValue('iTime', 'float')
CHANNEL0 = AmbientValue('iChannel0', 'texture2d<float>', uniform_field=False)

AMBIENT_VALUES: Tuple[AmbientValue, ...] = (RESOLUTION, TIME, CHANNEL0)


def uniform_fields() -> Tuple[AmbientValue, ...]:
    """Ambient values carried in the per-frame uniform struct."""
    return tuple(value for value in AMBIENT_VALUES if value.uniform_field)
