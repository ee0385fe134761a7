#!/usr/bin/env python3
"""Voxel NCA headless runner

Drives a session the way a render loop would: ticks at a fixed rate, steps
every `--frame-skip` ticks while playing, and optionally writes a snapshot of
the final masked grid.

Usage:
    python run.py --model chicken.pt           # Run a TorchScript update model
    python run.py --identity --steps 10        # Stub backend (state unchanged)
    python run.py --model m.pt --profile       # Torch profiler trace of stepping
    python run.py --model m.pt --snapshot out/final.png
"""

from __future__ import annotations

import argparse
from pathlib import Path

from voxel_nca.automaton.backend import identity_backend, load_torchscript
from voxel_nca.automaton.config import AutomatonConfig, DamageMode
from voxel_nca.console import console
from voxel_nca.instrument.history import StateHistoryInstrument
from voxel_nca.instrument.profiler import create_profiler
from voxel_nca.runtime import get_device
from voxel_nca.session import Session


def main():
    parser = argparse.ArgumentParser(
        description="Voxel NCA",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("--model", type=str, default=None, help="TorchScript update model")
    parser.add_argument("--identity", action="store_true", help="Use an identity stub backend")
    parser.add_argument("--output-name", type=str, default="mul_1", help="Model output to read when it returns a dict")
    parser.add_argument("--steps", type=int, default=50, help="Number of model steps")
    parser.add_argument("--size", type=int, default=16, help="Grid edge length")
    parser.add_argument("--channels", type=int, default=16, help="Channels per voxel")
    parser.add_argument("--frame-skip", type=int, default=5, help="Ticks per model step")
    parser.add_argument("--damage-mode", choices=[m.value for m in DamageMode], default=DamageMode.SPHERE.value)
    parser.add_argument("--device", type=str, default=None, help="Device (cuda, mps, cpu)")
    parser.add_argument("--profile", action="store_true", help="Enable torch profiling")
    parser.add_argument("--snapshot", type=str, default=None, help="Write a PNG of the final masked grid")
    parser.add_argument("--quiet", action="store_true", help="Only print errors")

    args = parser.parse_args()
    console.quiet = args.quiet

    config = AutomatonConfig(
        size=args.size,
        channels=args.channels,
        frame_skip=args.frame_skip,
        damage_mode=DamageMode(args.damage_mode),
        output_name=args.output_name,
        device=get_device(args.device),
        profile_enabled=args.profile,
        profile_active_steps=max(1, args.steps - 3),
    )

    backend = None
    if args.model is not None:
        backend = load_torchscript(args.model, output_name=config.output_name, device=config.device)
    elif args.identity:
        backend = identity_backend()

    history = StateHistoryInstrument(keep_state=False)
    session = Session(config, backend, instrumentation=[history], blocking=True)

    console.header(
        "Voxel NCA",
        Device=config.device,
        Grid=f"{config.size}³ x {config.channels}",
        Backend=repr(session.engine.backend) if session.engine.ready else "none",
        Steps=str(args.steps),
    )

    profiler = create_profiler(config)
    if profiler is not None:
        profiler.start()
    session.toggle_play()
    try:
        with console.spinner("Stepping"):
            for _ in range(args.steps * config.frame_skip):
                if session.tick() and profiler is not None:
                    profiler.step()
    except KeyboardInterrupt:
        console.warn("Interrupted")
    finally:
        if profiler is not None:
            profiler.stop()

    frame = session.frame()
    console.success(
        "Completed",
        detail=f"{session.engine.steps} steps, {frame.instances.count} visible voxels",
    )
    if history.history:
        console.info("Alive voxels", detail=" ".join(str(a) for a in history.alive_series()[-10:]))

    if args.snapshot:
        from voxel_nca.render.snapshot import save_snapshot

        path = save_snapshot(frame, Path(args.snapshot), alpha_threshold=config.render_alpha_threshold)
        console.success("Snapshot saved", detail=str(path))


if __name__ == "__main__":
    main()
