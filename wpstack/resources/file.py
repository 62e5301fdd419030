"""
File resource - files, directories and symbolic links on the host.

A file's content is given inline or rendered from a Jinja2 template;
rendering is strict, so a missing template variable is an error rather
than an empty string in the output.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from wpstack.core.resource import Action, Plan, Platform, Resource
from wpstack.errors import WpstackError

KINDS = ("file", "directory", "link", "absent")


class File(Resource):
    """
    A file, directory or symlink.

    Examples:
        # Directory owned by the web server
        File("/var/www/blog", ensure="directory", owner="www-data", group="www-data")

        # Template
        File("/etc/nginx/sites-available/blog",
             template="templates/nginx-site.conf.j2",
             vars={"host": "example.com", "port": 80},
             mode=0o644)

        # Symbolic link, repointed if it leads elsewhere
        File("/etc/nginx/sites-enabled/blog",
             ensure="link",
             target="/etc/nginx/sites-available/blog")

        # Gone
        File("/etc/nginx/sites-enabled/default", ensure="absent")
    """

    def __init__(
        self,
        path: str,
        content: Optional[str] = None,
        template: Optional[str] = None,
        vars: Optional[Dict[str, Any]] = None,
        ensure: str = "file",
        target: Optional[str] = None,
        mode: Optional[int] = None,
        owner: Optional[str] = None,
        group: Optional[str] = None,
        **options
    ):
        """
        Args:
            path: Path on the host
            content: Inline content
            template: Path to a Jinja2 template (used when content is None)
            vars: Template variables
            ensure: "file", "directory", "link" or "absent"
            target: What the link points to (ensure="link")
            mode: Permission bits, e.g. 0o644
            owner: Owning user name
            group: Owning group name
        """
        super().__init__(path, **options)

        if ensure not in KINDS:
            raise ValueError(f"File ensure must be one of {KINDS}, got {ensure!r}")
        if ensure == "link" and not target:
            raise ValueError("File ensure='link' requires a target")

        self.path = path
        self.content = content
        self.template = template
        self.vars = vars or {}
        self.ensure = ensure
        self.target = target
        self.mode = mode
        self.owner = owner
        self.group = group

    def resource_type(self) -> str:
        return "file"

    def check(self, platform: Platform) -> Dict[str, Any]:
        if self.ensure == "link":
            return self._check_link()
        if self.ensure == "absent":
            code = self._transport.run_command(["test", "-e", self.path, "-o", "-L", self.path])[1]
            return {"exists": code == 0}

        if not self._transport.file_exists(self.path):
            return {"exists": False}

        state = {"exists": True, **self._stat()}
        if state["kind"] == "file" and self.ensure == "file":
            state["content"] = self._read()
        return state

    def _check_link(self) -> Dict[str, Any]:
        output, code = self._transport.run_command(["readlink", self.path])
        if code == 0:
            return {"exists": True, "target": output.strip()}
        # Something other than a link already sits there: leave it alone
        if self._transport.file_exists(self.path):
            return {"exists": True, "target": self.target}
        return {"exists": False}

    def _stat(self) -> Dict[str, Any]:
        """kind, mode, owner and group of the existing path; None where unknown."""
        output, code = self._transport.run_command(["stat", "-c", "%F|%a|%U|%G", self.path])
        if code != 0:
            return {"kind": None, "mode": None, "owner": None, "group": None}

        fields = output.strip().split("|") + [""] * 4
        file_type, mode, owner, group = (f.strip() for f in fields[:4])
        file_type = file_type.lower()
        kind = "file" if "regular" in file_type else "directory" if "directory" in file_type else None
        try:
            mode_bits = int(mode, 8)
        except ValueError:
            mode_bits = None
        return {"kind": kind, "mode": mode_bits, "owner": owner or None, "group": group or None}

    def _read(self) -> Optional[str]:
        try:
            return self._transport.read_file(self.path).decode("utf-8")
        except UnicodeDecodeError:
            return None

    def desired_state(self) -> Dict[str, Any]:
        if self.ensure == "absent":
            return {"exists": False}
        if self.ensure == "link":
            return {"exists": True, "target": self.target}

        state: Dict[str, Any] = {"exists": True, "kind": self.ensure}
        text = self.text()
        if text is not None:
            state["content"] = text
        if self.mode is not None:
            state["mode"] = self.mode
        if self.owner is not None:
            state["owner"] = self.owner
        if self.group is not None:
            state["group"] = self.group
        return state

    def apply(self, plan: Plan, platform: Platform) -> None:
        if plan.action == Action.DELETE:
            self._transport.check_command(["rm", "-rf", self.path])
            return
        if self.ensure == "link":
            self._transport.check_command(["ln", "-sfn", self.target, self.path])
            return

        changes = {change.field: change.to_value for change in plan.changes}

        if plan.action == Action.CREATE:
            self._create(changes.get("content"))
        elif "kind" in changes:
            raise WpstackError(f"{self.path} exists but is not a {self.ensure}")
        elif "content" in changes:
            self._transport.write_file(self.path, changes["content"].encode("utf-8"))

        if "mode" in changes:
            self._transport.check_command(["chmod", format(self.mode, "o"), self.path])
        if "owner" in changes or "group" in changes:
            self._chown()

    def _chown(self) -> None:
        who = f"{self.owner or ''}:{self.group}" if self.group else self.owner
        self._transport.check_command(["chown", who, self.path])

    def _create(self, content: Optional[str]) -> None:
        if self.ensure == "directory":
            self._transport.check_command(["mkdir", "-p", self.path])
            return

        self._transport.check_command(["mkdir", "-p", str(Path(self.path).parent)])
        if content is None:
            self._transport.check_command(["touch", self.path])
        else:
            self._transport.write_file(self.path, content.encode("utf-8"))

    def text(self) -> Optional[str]:
        """The file's desired content: inline, rendered, or None."""
        if self.content is not None:
            return self.content
        if self.template is not None:
            return self.render()
        return None

    def render(self) -> str:
        """Render the Jinja2 template with this resource's vars."""
        template_path = Path(self.template)
        if not template_path.exists():
            raise FileNotFoundError(f"Template not found: {self.template}")

        env = Environment(
            loader=FileSystemLoader(template_path.parent),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        return env.get_template(template_path.name).render(**self.vars)
