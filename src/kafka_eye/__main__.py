"""Allow running as python -m kafka_eye."""

from kafka_eye.cli.main import main

if __name__ == "__main__":
    main()
