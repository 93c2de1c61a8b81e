"""core/ -- Kernel: configuration, clock and input policy. Imports no other layer."""
