import dataclasses


def configure(config, options):
    return dataclasses.replace(config, output_filename="server.js")


def tag_plugin(argv, config):
    return argv + ["--banner=override"]


PLUGINS = [tag_plugin]
