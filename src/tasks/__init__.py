"""Task modules live here.

Each module declares its steps with
`@assetflow.task(name=..., inputs=[...], outputs=[...])`; the CLI imports every
module in this package and wires the steps into pipelines.

Do not implement logic here unless it's shared helpers; keep tasks modular per file.
"""
