"""Package entry point for ``python -m subtitle_converter``.

WHY: Users run the converter as ``python -m subtitle_converter movie.srt --to vtt``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.
"""

from subtitle_converter.cli import main

if __name__ == "__main__":
    main()
