import sys

from pubtools.pluggy import pm, hookspec

# Define hooks here for any events which may be of interest for any other
# projects in pubtools-*, or Pub.


@hookspec
def dockerhub_image_pushed(image: str) -> None:
    """Invoked after an image has been pushed by the docker CLI.

    :param image: Pushed image reference.
    :type image: str
    """


@hookspec
def dockerhub_manifest_list_pushed(image: str, digest: str, length: int) -> None:
    """Invoked after a multi-architecture manifest list has been pushed.

    :param image: Image reference the manifest list was pushed to.
    :type image: str
    :param digest: Digest of the manifest list.
    :type digest: str
    :param length: Byte length of the manifest list.
    :type length: int
    """


@hookspec
def dockerhub_manifest_signed(repo: str, tag: str, digest: str) -> None:
    """Invoked after a signed hash record of a manifest has been added to the trust server.

    :param repo: Repository of the signed manifest.
    :type repo: str
    :param tag: Tag of the signed manifest.
    :type tag: str
    :param digest: Digest of the signed manifest.
    :type digest: str
    """


pm.add_hookspecs(sys.modules[__name__])
