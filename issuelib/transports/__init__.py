"""Generation provider transports sharing one generate() interface."""
