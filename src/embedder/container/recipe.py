"""Embedded build recipe for the browser driver image."""

from __future__ import annotations

GECKODRIVER_VERSION = "0.35.0"

DOCKERFILE = f"""\
FROM debian:bookworm-slim

ENV DEBIAN_FRONTEND=noninteractive \\
    MOZ_HEADLESS=1

RUN apt-get update \\
    && apt-get install -y --no-install-recommends firefox-esr ca-certificates curl \\
    && curl -fsSL https://github.com/mozilla/geckodriver/releases/download/v{GECKODRIVER_VERSION}/geckodriver-v{GECKODRIVER_VERSION}-linux64.tar.gz \\
       | tar -xz -C /usr/local/bin \\
    && ln -s /usr/bin/firefox-esr /usr/local/bin/firefox \\
    && apt-get purge -y curl \\
    && rm -rf /var/lib/apt/lists/*

RUN useradd --create-home driver
USER driver

EXPOSE 4444
CMD ["geckodriver", "--host", "0.0.0.0", "-p", "4444"]
"""
