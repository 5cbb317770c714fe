"""Console wrapper that runs the xlauth CLI as a child process.

Used where the main entry point cannot own a console (e.g. a GUI-subsystem
build on Windows). The child's stdout and stderr are copied verbatim to ours
and its exit status becomes ours.
"""
import asyncio
import logging
import os
import sys

logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def inner_command(args):
    """Command line for the wrapped CLI invocation."""
    return [sys.executable, "-m", "xlauth.cli.main", *args]


async def _forward_stream(reader: asyncio.StreamReader, writer) -> None:
    """
    Copy reader to a binary file object until EOF.

    A write failure is logged once; the rest of the stream is still read and
    discarded so the child never blocks on a full pipe.
    """
    failed = False
    while True:
        chunk = await reader.read(CHUNK_SIZE)
        if not chunk:
            break
        if failed:
            continue
        try:
            writer.write(chunk)
            writer.flush()
        except (OSError, ValueError) as e:
            logger.error(f"stream forward error: {e}")
            failed = True


async def run(command, stdout=None, stderr=None) -> int:
    """
    Run command, forwarding its output while waiting for it to exit.

    Args:
        command: argv of the child process
        stdout: Binary file object receiving the child's stdout
        stderr: Binary file object receiving the child's stderr

    Returns:
        Child exit code, or 1 if it has none (e.g. killed by a signal)
    """
    stdout = stdout or sys.stdout.buffer
    stderr = stderr or sys.stderr.buffer

    env = dict(os.environ, XLAUTH_CLI="1")
    process = await asyncio.create_subprocess_exec(
        *command,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=env,
    )

    forwarders = [
        asyncio.create_task(_forward_stream(process.stdout, stdout)),
        asyncio.create_task(_forward_stream(process.stderr, stderr)),
    ]

    returncode = await process.wait()
    await asyncio.gather(*forwarders)

    if returncode is None or returncode < 0:
        return 1
    return returncode


def main():
    try:
        returncode = asyncio.run(run(inner_command(sys.argv[1:])))
    except OSError as e:
        print(f"Error: failed to start xlauth: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(returncode)


if __name__ == "__main__":
    main()
