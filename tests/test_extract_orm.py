"""Tests for Prisma and Rails schema extraction."""

from schemagate.kernel.extract import extract_artifact
from schemagate.kernel.model import ArtifactKind, IdentifierKind, SchemaArtifact


PRISMA_SCHEMA = """\
datasource db {
  provider = "mysql"
  url      = env("DATABASE_URL")
}

enum OrderStatus {
  NEW
  PAID
  SHIPPED
}

model Order {
  id         Int         @id @default(autoincrement())
  customerId String      @map("customer_id")
  status     OrderStatus
  price      Float
  notes      String      @db.Text
  customer   Customer    @relation(fields: [customerId], references: [id])

  @@index([notes(length: 10)], map: "idx_orders_notes")
  @@map("orders")
}

model Customer {
  email  String @unique
  orders Order[]
}
"""

RAILS_SCHEMA = """\
ActiveRecord::Schema[7.1].define(version: 2024_05_01_000000) do
  create_table "users", charset: "utf8mb4", collation: "utf8mb4_0900_ai_ci", force: :cascade do |t|
    t.string "email", limit: 191, null: false
    t.decimal "balance", precision: 12, scale: 2
    t.text "bio", size: :medium
    t.references "account"
    t.timestamps
    t.index ["email"], name: "index_users_on_email", unique: true
  end

  create_table "events", id: false, options: "ENGINE=MyISAM DEFAULT CHARSET=utf8", force: :cascade do |t|
    t.float "amount"
  end

  add_index "events", ["amount"], name: "index_events_on_amount"
end
"""


def _orm(text: str, path: str) -> SchemaArtifact:
    return SchemaArtifact(path=path, kind=ArtifactKind.ORM_SCHEMA, raw_text=text, strategy="orm")


def test_prisma_models_become_tables():
    result = extract_artifact(_orm(PRISMA_SCHEMA, "prisma/schema.prisma"))
    assert [t.name for t in result.tables] == ["orders", "Customer"]

    orders = result.tables[0]
    assert orders.has_primary_key is True
    assert orders.engine is None
    assert [c.name for c in orders.columns] == ["id", "customer_id", "status", "price", "notes"]
    assert orders.get_column("status").is_enum is True
    assert orders.get_column("status").enum_value_count == 3
    assert orders.get_column("price").is_floating_point is True
    assert orders.get_column("customer_id").declared_type == "VARCHAR(191)"
    assert orders.get_column("notes").declared_type == "TEXT"

    index = [i for i in orders.indexes if i.name == "idx_orders_notes"][0]
    assert index.columns[0].name == "notes"
    assert index.columns[0].prefix_length == 10

    customer = result.tables[1]
    assert customer.has_primary_key is False
    assert [c.name for c in customer.columns] == ["email"]


def test_prisma_identifiers_use_mapped_names():
    result = extract_artifact(_orm(PRISMA_SCHEMA, "prisma/schema.prisma"))
    tables = [i.name for i in result.identifiers if i.kind == IdentifierKind.TABLE]
    assert tables == ["orders", "Customer"]
    columns = [(i.table, i.name) for i in result.identifiers if i.kind == IdentifierKind.COLUMN]
    assert ("orders", "customer_id") in columns
    assert ("orders", "customerId") not in columns


def test_rails_create_table_options():
    result = extract_artifact(_orm(RAILS_SCHEMA, "db/schema.rb"))
    users, events = result.tables
    assert users.name == "users"
    assert users.charset == "utf8mb4"
    assert users.collation == "utf8mb4_0900_ai_ci"
    assert users.engine is None
    assert users.has_primary_key is True
    assert [c.name for c in users.columns] == [
        "id", "email", "balance", "bio", "account_id", "created_at", "updated_at",
    ]
    assert users.get_column("email").declared_type == "VARCHAR(191)"
    assert users.get_column("balance").declared_type == "DECIMAL(12,2)"
    assert users.get_column("bio").declared_type == "MEDIUMTEXT"
    assert users.get_column("account_id").declared_type == "BIGINT"

    assert events.engine == "MyISAM"
    assert events.charset == "utf8"
    assert events.has_primary_key is False
    assert [i.name for i in events.indexes] == ["index_events_on_amount"]


def test_rails_identifiers():
    result = extract_artifact(_orm(RAILS_SCHEMA, "db/schema.rb"))
    indexes = [(i.table, i.name) for i in result.identifiers if i.kind == IdentifierKind.INDEX]
    assert indexes == [("users", "index_users_on_email"), ("events", "index_events_on_amount")]
    assert result.parse_notes == []
