"""Bell pair example: entangle two qubits and measure them repeatedly.

Runs the instruction sequence

    INITIALIZE R 2
    SELECT Q R 0 1
    APPLY G_H Q
    APPLY G_CNOT R
    MEASURE R RES

many times and prints the outcome histogram; only 00 and 11 occur.
"""

from __future__ import annotations

from collections import Counter

import qassembler as qa


def main() -> None:
    """Prepare and measure Bell pairs."""
    shots = 500
    counts: Counter = Counter()

    with qa.AssemblerContext(qa.AssemblerConfig(seed=0)) as ctx:
        ctx.initialize("R", 2)
        for shot in range(shots):
            if shot:
                ctx.reinitialize("R", 2)
                ctx.destroy("Q")
            ctx.select("Q", "R", 0, 1)
            ctx.apply("G_H", "Q")
            ctx.apply("G_CNOT", "R")
            counts[ctx.measure("R", f"RES{shot}").bitstring] += 1

    print(f"Outcomes over {shots} shots:")
    for bitstring in sorted(counts):
        print(f"  {bitstring}: {counts[bitstring]}")


if __name__ == "__main__":
    main()
