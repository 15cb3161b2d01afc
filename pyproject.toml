[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tm2g29"
version = "0.1.0"
description = "Protocol translator that presents Thrustmaster racing wheels as Logitech G29 devices"
requires-python = ">=3.11"
keywords = ["thrustmaster", "g29", "racing wheel", "hid", "hidraw", "force feedback", "iforce"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Operating System :: Microsoft :: Windows",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware :: Universal Serial Bus (USB) :: Human Interface Device (HID)",
    "Topic :: Games/Entertainment :: Simulation",
]
dependencies = [
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
tm-g29 = "tm2g29.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tm2g29"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
