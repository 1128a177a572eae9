"""
Basic Usage Example for liquid-frames

This script demonstrates the fundamental workflow:
1. Open a session on a scratch workspace
2. Drive a gesture and record runs
3. Benchmark the tuning and capture a baseline
4. Evaluate the release gate
"""

import tempfile
from pathlib import Path

from liquid_frames import MotionSession, Preset
from liquid_frames.reporting import summarize_benchmark


def drive_gesture(session, lean=0.0):
    """Pull upward in a few steps, then release."""
    for pull in (60.0, 140.0, 230.0):
        session.update_gesture((lean, -pull), (lean * 1.5, -pull - 60.0))
    return session.end_gesture()


def main():
    print("=" * 60)
    print("liquid-frames Basic Usage Example")
    print("=" * 60)

    workspace = Path(tempfile.mkdtemp()) / "motion-workspace.json"

    # Step 1: Open session
    print("\n[1] Opening session...")
    session = MotionSession.open(workspace)
    session.select_preset(Preset.RESPONSIVE)
    session.apply_selected_preset()
    print(f"    Workspace: {workspace}")
    print(f"    Active profile: {session.active_profile.name}")

    # Step 2: Record runs
    print("\n[2] Recording gesture runs...")
    for lean in (0.0, 25.0, -40.0, 10.0, 0.0, 60.0):
        run = drive_gesture(session, lean)
        print(f"    run {run.id[:8]}: {run.total_duration:.2f}s, bias {run.bias_peak:+.2f}")
    print(f"    Quality: {session.quality_report.level.label}")

    # Step 3: Benchmark + baseline
    print("\n[3] Benchmarking...")
    session.save_current_to_active_profile()
    report = session.run_benchmark_suite()
    session.set_baseline_from_current_benchmark()
    print(summarize_benchmark(report))

    # Step 4: Release gate
    print("\n[4] Release gate...")
    gate = session.release_gate_report()
    print(f"    Status: {gate.status.label}")
    for finding in gate.findings:
        print(f"    - {finding}")

    path = session.save_now()
    session.close()
    print(f"\nWorkspace saved to: {path}")


if __name__ == "__main__":
    main()
