"""popgen-lab: simulation exercises for population-genetics coursework.

Small generation-by-generation simulations, each compared against its
textbook expectation:
  - Random genetic drift (Gaussian and Wright-Fisher walks, absorption)
  - Linkage disequilibrium decay under recombination and drift
  - Regular systems of close inbreeding, checked on synthetic pedigrees
  - Change of base population for inbreeding coefficients
"""

__version__ = "0.1.0"
