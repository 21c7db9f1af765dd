"""
Default market universe: listings, correlated groups and the headline pool.
"""
from typing import Dict, List, Tuple

from .types import Listing

DEFAULT_LISTINGS: Tuple[Listing, ...] = (
    Listing("Asteroid Mining Co", "Provides mining services on asteroids.", 100, 300),
    Listing("Mars Real Estate", "Develops real estate on Mars.", 150, 400),
    Listing("Space Tourism", "Offers leisure trips to space.", 80, 200),
    Listing("Galactic Commodities", "Trades rare commodities across galaxies.", 90, 250),
    Listing("Lunar Energy Corp", "Generates energy using lunar resources.", 60, 150),
    Listing("Orbital Transport", "Provides transportation in orbit.", 120, 350),
    Listing("Terraform Inc", "Works on terraforming planets.", 200, 500),
    Listing("Deep Space Tech", "Develops advanced deep-space technology.", 70, 220),
    Listing("Zero-G Manufacturing", "Manufactures goods in zero gravity.", 100, 250),
    Listing("Quantum Computing Labs", "Pioneers quantum computing for space apps.", 180, 400),
)

# anchor -> affiliated securities
DEFAULT_GROUPS: Dict[str, List[str]] = {
    "Asteroid Mining Co": ["Lunar Energy Corp", "Galactic Commodities"],
    "Terraform Inc": ["Mars Real Estate", "Space Tourism"],
    "Deep Space Tech": ["Orbital Transport", "Quantum Computing Labs"],
}

DEFAULT_HEADLINES: Tuple[str, ...] = (
    "Major breakthrough in quantum thrusters!",
    "Terraform Inc unveils new gene-edited seeds for Mars.",
    "Space Tourism faces safety lawsuit after rocket mishap.",
    "Asteroid Mining Co finds massive platinum deposit.",
    "Lunar Energy Corp sees record demand for Helium-3.",
    "Orbital Transport invests in next-gen propulsion.",
    "Zero-G Manufacturing perfects 3D printing for space habitats.",
    "Galactic Commodities surges on rare metal shortage.",
    "Deep Space Tech announces AI-based navigation system.",
    "Quantum Computing Labs reveals advanced entangled processor.",
)
