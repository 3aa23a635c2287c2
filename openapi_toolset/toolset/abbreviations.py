"""工具名缩写词表 / Tool Name Word Tables

只读词表,作为默认值注入 ``NameCompressor``。
Read-only tables injected into ``NameCompressor`` as its defaults.
"""

from types import MappingProxyType
from typing import FrozenSet, Mapping

STOP_WORDS: FrozenSet[str] = frozenset({
    "controller",
    "api",
    "service",
    "handler",
    "endpoint",
    "operation",
    "resource",
    "using",
    "via",
    "the",
    "a",
    "an",
})

WORD_ABBREVIATIONS: Mapping[str, str] = MappingProxyType({
    "account": "Acct",
    "accounts": "Accts",
    "address": "Addr",
    "addresses": "Addrs",
    "administrator": "Admin",
    "application": "App",
    "applications": "Apps",
    "attachment": "Attch",
    "attachments": "Attchs",
    "attribute": "Attr",
    "attributes": "Attrs",
    "authentication": "Authn",
    "authority": "Auth",
    "authorization": "Authz",
    "calculate": "Calc",
    "category": "Cat",
    "categories": "Cats",
    "certificate": "Cert",
    "certificates": "Certs",
    "collection": "Coll",
    "configuration": "Config",
    "configurations": "Configs",
    "connection": "Conn",
    "connections": "Conns",
    "customer": "Cust",
    "customers": "Custs",
    "database": "Db",
    "definition": "Def",
    "definitions": "Defs",
    "department": "Dept",
    "description": "Desc",
    "destination": "Dest",
    "development": "Dev",
    "directory": "Dir",
    "document": "Doc",
    "documents": "Docs",
    "environment": "Env",
    "environments": "Envs",
    "execution": "Exec",
    "group": "Grp",
    "groups": "Grps",
    "identifier": "Id",
    "image": "Img",
    "images": "Imgs",
    "information": "Info",
    "initialize": "Init",
    "management": "Mgmt",
    "message": "Msg",
    "messages": "Msgs",
    "notification": "Notif",
    "notifications": "Notifs",
    "number": "Num",
    "organization": "Org",
    "organizations": "Orgs",
    "parameter": "Param",
    "parameters": "Params",
    "password": "Pwd",
    "permission": "Perm",
    "permissions": "Perms",
    "preference": "Pref",
    "preferences": "Prefs",
    "product": "Prod",
    "products": "Prods",
    "production": "Prod",
    "project": "Proj",
    "projects": "Projs",
    "reference": "Ref",
    "references": "Refs",
    "repository": "Repo",
    "repositories": "Repos",
    "request": "Req",
    "requests": "Reqs",
    "response": "Resp",
    "responses": "Resps",
    "specification": "Spec",
    "statistics": "Stats",
    "subscription": "Sub",
    "subscriptions": "Subs",
    "synchronize": "Sync",
    "temporary": "Temp",
    "transaction": "Txn",
    "transactions": "Txns",
    "user": "Usr",
    "users": "Usrs",
    "version": "Ver",
    "versions": "Vers",
})
