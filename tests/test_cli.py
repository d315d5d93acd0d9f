"""Tests for the run_triangulation command line front end."""

import json
import logging
import sys

import numpy as np

import run_triangulation
from PointCloudTriangulation.logger import ROOT_LOGGER_NAME, configure_root_logger


def run_cli(monkeypatch, *args):
    monkeypatch.setattr(sys, 'argv', ['run_triangulation.py', *args])
    return run_triangulation.main()


class TestCommandLine:

    def test_point_file_to_json_mesh(self, monkeypatch, tmp_path, sphere_points):
        source = tmp_path / 'sphere.xyz'
        np.savetxt(source, sphere_points)
        target = tmp_path / 'mesh.json'

        assert run_cli(monkeypatch, '--input', str(source), '--output', str(target), '--radius', '0.5') == 0
        message = json.loads(target.read_text())
        assert len(message['triangles']) > 0

    def test_json_request(self, monkeypatch, tmp_path, tetrahedron):
        source = tmp_path / 'request.json'
        source.write_text(json.dumps({'points': tetrahedron.tolist()}))
        target = tmp_path / 'response.json'

        assert run_cli(monkeypatch, '--input', str(source), '--output', str(target), '--planar') == 0
        assert json.loads(target.read_text())['success']

    def test_empty_request_fails(self, monkeypatch, tmp_path):
        source = tmp_path / 'request.json'
        source.write_text(json.dumps({'points': []}))

        assert run_cli(monkeypatch, '--input', str(source), '--output', str(tmp_path / 'r.json')) == 1

    def test_missing_input(self, monkeypatch, tmp_path):
        assert run_cli(monkeypatch, '--input', str(tmp_path / 'missing.xyz')) == 1

    def test_invalid_radius(self, monkeypatch, tmp_path, tetrahedron):
        source = tmp_path / 'cloud.xyz'
        np.savetxt(source, tetrahedron)
        assert run_cli(monkeypatch, '--input', str(source), '--radius', '-1') == 1

    def test_quiet_logs_to_file_only(self, monkeypatch, tmp_path, tetrahedron):
        source = tmp_path / 'request.json'
        source.write_text(json.dumps({'points': tetrahedron.tolist()}))
        log_file = tmp_path / 'triangulation.log'

        try:
            code = run_cli(monkeypatch, '--input', str(source), '--output', str(tmp_path / 'r.json'), '--planar',
                           '--quiet', '--log-file', str(log_file))
            handlers = logging.getLogger(ROOT_LOGGER_NAME).handlers
            assert code == 0
            assert all(isinstance(h, logging.FileHandler) for h in handlers)
            assert "Service request received" in log_file.read_text()
        finally:
            configure_root_logger()
