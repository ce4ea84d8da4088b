"""
Basin Dynamics - Stochastic annealing on a Gaussian energy landscape.
"""

from .field import (
    Basin,
    BasinField,
    BasinSpec,
    BASIN_CATALOG,
    Landscape,
    compute_landscape,
    make_basin_field,
)
from .integrator import (
    Arena,
    Integrator,
    IntegratorParams,
    SimulationState,
    uniform_noise,
    zero_noise,
)
from .classifier import BasinClassifier, Classification, ClassifierConfig
from .readout import (
    BASELINE_READOUT,
    ReadoutConfig,
    ReadoutVector,
    interpolate_readout,
)
from .perturb import PerturbationConfig
from .simulation import (
    ControlParameters,
    FrameSnapshot,
    Simulation,
    SimulationParams,
)

__version__ = "0.1.0"

__all__ = [
    # Field
    'Basin',
    'BasinField',
    'BasinSpec',
    'BASIN_CATALOG',
    'Landscape',
    'compute_landscape',
    'make_basin_field',
    # Integrator
    'Arena',
    'Integrator',
    'IntegratorParams',
    'SimulationState',
    'uniform_noise',
    'zero_noise',
    # Classifier
    'BasinClassifier',
    'Classification',
    'ClassifierConfig',
    # Readout
    'BASELINE_READOUT',
    'ReadoutConfig',
    'ReadoutVector',
    'interpolate_readout',
    # Simulation
    'PerturbationConfig',
    'ControlParameters',
    'FrameSnapshot',
    'Simulation',
    'SimulationParams',
]
