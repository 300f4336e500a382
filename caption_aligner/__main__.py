"""Package entry point for ``python -m caption_aligner``.

WHY: Users can run the tool as ``python -m caption_aligner transcribe
video.mp4`` without installing the console script.

HOW: Delegates to the CLI's main() function.
"""

from caption_aligner.cli import main

if __name__ == "__main__":
    main()
