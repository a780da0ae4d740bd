"""Engine services built on ``slipcheck.core``: parlay simulation, live hedge
classification and hedge-accuracy tracking."""
