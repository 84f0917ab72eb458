"""Benchmark APPLY and MEASURE on registers and views."""

import time
from typing import Dict

import torch

import qassembler as qa
from qassembler.backend.statevector import apply_operator, zero_state
from qassembler.gates import standard as stdgates


def benchmark_kernel(
    n_qubits: int,
    n_gates: int = 1000,
    device: str = "sv_cpu",
) -> Dict[str, float]:
    """Benchmark the raw statevector kernel.

    Args:
        n_qubits: Number of qubits.
        n_gates: Number of gates to apply.
        device: Assembler device name.

    Returns:
        Dictionary with timing results.
    """
    dev = qa.device(device)
    dtype = dev.complex_dtype
    torch_device = dev.as_torch_device()

    state = zero_state(n_qubits, device=dev)
    gates = [
        (stdgates.H(dtype=dtype, device=torch_device), 1),
        (stdgates.X(dtype=dtype, device=torch_device), 1),
        (stdgates.CNOT(dtype=dtype, device=torch_device), 2),
    ]

    for _ in range(10):
        apply_operator(state, gates[0][0], [0])

    start = time.perf_counter()
    for i in range(n_gates):
        gate, arity = gates[i % len(gates)]
        qubits = [(i + j) % n_qubits for j in range(arity)]
        state = apply_operator(state, gate, qubits)
    end = time.perf_counter()

    total_time = end - start
    return {
        "n_qubits": n_qubits,
        "n_gates": n_gates,
        "total_time_sec": total_time,
        "time_per_gate_sec": total_time / n_gates,
        "gates_per_sec": n_gates / total_time,
    }


def benchmark_context(
    n_qubits: int,
    n_gates: int = 1000,
    n_measurements: int = 100,
) -> Dict[str, float]:
    """Benchmark APPLY through views and MEASURE through the context.

    Includes name resolution, locking and validation on top of the kernel.
    """
    with qa.AssemblerContext(qa.AssemblerConfig(seed=0)) as ctx:
        ctx.initialize("R", n_qubits)
        for q in range(n_qubits):
            ctx.select(f"Q{q}", "R", q, 1)

        start = time.perf_counter()
        for i in range(n_gates):
            ctx.apply("G_H", f"Q{i % n_qubits}")
        apply_time = time.perf_counter() - start

        start = time.perf_counter()
        for i in range(n_measurements):
            ctx.measure(f"Q{i % n_qubits}", f"RES{i}")
        measure_time = time.perf_counter() - start

    return {
        "n_qubits": n_qubits,
        "time_per_apply_sec": apply_time / n_gates,
        "time_per_measure_sec": measure_time / n_measurements,
    }


if __name__ == "__main__":
    print("Benchmarking operator application...")

    results = benchmark_kernel(n_qubits=10, n_gates=1000)
    print("Kernel (10 qubits, 1000 gates):")
    print(f"  Time per gate: {results['time_per_gate_sec']*1e6:.2f} μs")
    print(f"  Gates per second: {results['gates_per_sec']:.0f}")

    results_ctx = benchmark_context(n_qubits=10)
    print("\nContext (10 qubits):")
    print(f"  Time per APPLY: {results_ctx['time_per_apply_sec']*1e6:.2f} μs")
    print(f"  Time per MEASURE: {results_ctx['time_per_measure_sec']*1e6:.2f} μs")

    if torch.cuda.is_available():
        results_cuda = benchmark_kernel(n_qubits=16, n_gates=1000, device="sv_cuda")
        print(f"\nCUDA kernel (16 qubits): {results_cuda['gates_per_sec']:.0f} gates/s")
