#   Copyright 2023-2024 Jianbo ZHU
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

from ._version import __version__
from .misc import Tolerance, DEFAULT_TOLERANCE
from .misc import InvalidTemperatureError, NoSolutionInRangeError
from .fermi import occupation, occupation_ionized
from .fermi import subband_population, subband_fermi
from .subbands import Subband, CarrierEnsemble
from .subbands import find_fermi_global, solve_fermi
from .debye import DebyeModel, debye3
