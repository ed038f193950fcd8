"""GitHub Actions step output helpers."""

import os


def set_output(key: str, value: str) -> None:
    """
    Write output for GitHub Actions or print for local runs.

    In GitHub Actions, appends to the GITHUB_OUTPUT file. Locally, prints
    ::set-output so the value is still visible in the log.
    """
    output_file = os.environ.get("GITHUB_OUTPUT")

    if output_file:
        with open(output_file, "a", encoding="utf-8") as f:
            f.write(f"{key}={value}\n")
    else:
        print(f"::set-output name={key}::{value}")

    print(f"  {key}={value}")


def set_outputs(outputs: dict) -> None:
    """Emit several outputs in order."""
    for key, value in outputs.items():
        set_output(key, str(value))
