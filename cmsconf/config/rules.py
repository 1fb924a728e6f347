"""CMS の settings.php 向け標準検証ルール。"""

from __future__ import annotations

from cmsconf.config.schema import rule

# 必須セクションの定義
CMS_REQUIRED_SECTIONS = ("BE", "DB", "FE", "GFX", "MAIL", "SYS")

GFX_COLORSPACES = ("RGB", "CMYK", "GRAY")
MAIL_TRANSPORTS = ("sendmail", "smtp", "mbox", "null")
DB_DRIVERS = ("mysqli", "pdo_mysql", "pdo_pgsql", "pdo_sqlite", "pdo_sqlsrv", "sqlsrv")
GFX_PROCESSORS = ("ImageMagick", "GraphicsMagick")

CMS_RULES = (
    # BE / FE
    rule("BE.debug", bool),
    # ハッシュ文字列、または無効化を表す false
    rule("BE.installToolPassword", (str, bool)),
    rule("BE.passwordHashing.className", str),
    rule("BE.passwordHashing.options", dict),
    rule("FE.debug", bool),
    rule("FE.disableNoCacheParameter", bool),
    rule("FE.passwordHashing.className", str),
    rule("FE.passwordHashing.options", dict),
    # DB
    rule("DB.Connections.Default.driver", str, DB_DRIVERS, required=True),
    rule("DB.Connections.Default.dbname", str, required=True),
    rule("DB.Connections.Default.host", str),
    rule("DB.Connections.Default.port", int),
    rule("DB.Connections.Default.user", str),
    rule("DB.Connections.Default.password", str),
    rule("DB.Connections.Default.charset", str),
    rule("DB.Connections.*.tableoptions.charset", str),
    rule("DB.Connections.*.tableoptions.collate", str),
    # EXTCONF / EXTENSIONS は拡張ごとに自由な構造
    rule("EXTCONF.lang.availableLanguages", list),
    rule("EXTCONF", dict),
    rule("EXTENSIONS", dict),
    # GFX
    rule("GFX.processor", str, GFX_PROCESSORS),
    rule("GFX.processor_allowTemporaryMasksAsPng", bool),
    rule("GFX.processor_colorspace", str, GFX_COLORSPACES),
    rule("GFX.processor_effects", bool),
    rule("GFX.processor_enabled", bool),
    rule("GFX.processor_path", str),
    # LOG: レベル → ライタークラス → オプション
    rule("LOG.writerConfiguration.*.*.disabled", bool),
    rule("LOG.*.*.*.writerConfiguration.*.*.disabled", bool),
    rule("LOG", dict),
    # MAIL
    rule("MAIL.transport", str, MAIL_TRANSPORTS, required=True),
    rule("MAIL.transport_sendmail_command", str),
    rule("MAIL.transport_smtp_encrypt", str),
    rule("MAIL.transport_smtp_password", str),
    rule("MAIL.transport_smtp_server", str),
    rule("MAIL.transport_smtp_username", str),
    # SYS
    rule("SYS.sitename", str, required=True),
    rule("SYS.encryptionKey", str, required=True),
    rule("SYS.belogErrorReporting", int),
    rule("SYS.devIPmask", str),
    rule("SYS.displayErrors", int),
    rule("SYS.exceptionalErrors", int),
    rule("SYS.features.*", bool),
    rule("SYS.systemMaintainers", list),
)
