from inference.build_spec import DEFAULT_INSTALL_PACKAGES, MODEL_URL, build_commands


def test_default_packages():
    commands = build_commands()

    assert DEFAULT_INSTALL_PACKAGES == "tensorflow"
    assert any(x.endswith("pip3 install tensorflow requests") for x in commands)


def test_empty_override_falls_back_to_default():
    assert build_commands("") == build_commands(None)


def test_override_packages():
    commands = build_commands("torch torchvision")

    assert any(x.endswith("pip3 install torch torchvision requests") for x in commands)
    assert not any("pip3 install tensorflow" in x for x in commands)


def test_requests_is_installed_with_any_override():
    (install,) = [x for x in build_commands("scikit-learn") if "pip3 install" in x]

    assert install.split("pip3 install ")[1].split() == ["scikit-learn", "requests"]


def test_chown_follows_posix_id():
    commands = build_commands(posix_id=1001)

    assert commands[-1] == "chown -R 1001:1001 $CODEBUILD_EFS1/lambda/"
    assert not any("1000" in x for x in commands)


def test_model_is_downloaded_before_install_and_chown_is_last():
    commands = build_commands()
    download = next(i for i, x in enumerate(commands) if MODEL_URL in x)
    install = next(i for i, x in enumerate(commands) if "pip3 install" in x)

    assert download < install
    assert commands[-1] == "chown -R 1000:1000 $CODEBUILD_EFS1/lambda/"
    assert "python3 -m venv $CODEBUILD_EFS1/lambda/tensorflow" in commands
    assert "tar zxf /tmp/1.tar.gz -C $CODEBUILD_EFS1/lambda/model" in commands
